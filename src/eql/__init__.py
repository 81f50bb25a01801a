"""eql - Parse, rewrite and unparse query transactions as ASTs."""

from eql.notation import dumps, parse_text, read_string
from eql.query_language import (
    QueryKind,
    QueryParseError,
    RootNode,
    focus_subquery,
    get_query,
    mask_query,
    merge_queries,
    parse,
    unparse,
)
from eql.values import RECURSION, Keyword, ListForm, Symbol, is_ident


__version__ = "0.1.0"

__all__ = [
    "RECURSION",
    "Keyword",
    "ListForm",
    "QueryKind",
    "QueryParseError",
    "RootNode",
    "Symbol",
    "__version__",
    "dumps",
    "focus_subquery",
    "get_query",
    "is_ident",
    "mask_query",
    "merge_queries",
    "parse",
    "parse_text",
    "read_string",
    "unparse",
]
