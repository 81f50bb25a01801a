"""Public API for query AST parsing, unparsing and algebra."""

from eql.query_language.algebra import (
    focus_subquery,
    get_query,
    mask_query,
    merge_asts,
    merge_queries,
)
from eql.query_language.ast import (
    CallNode,
    JoinNode,
    Node,
    PropNode,
    QueryKind,
    RootNode,
    UnionEntryNode,
    UnionNode,
)
from eql.query_language.errors import (
    InvalidCallShapeError,
    InvalidJoinShapeError,
    InvalidParamsError,
    InvalidRecursionMarkerError,
    NotationParseError,
    QueryLanguageError,
    QueryMergeError,
    QueryParseError,
    UnclassifiableElementError,
)
from eql.query_language.parser import parse
from eql.query_language.unparser import unparse


__all__ = [
    "CallNode",
    "InvalidCallShapeError",
    "InvalidJoinShapeError",
    "InvalidParamsError",
    "InvalidRecursionMarkerError",
    "JoinNode",
    "Node",
    "NotationParseError",
    "PropNode",
    "QueryKind",
    "QueryLanguageError",
    "QueryMergeError",
    "QueryParseError",
    "RootNode",
    "UnclassifiableElementError",
    "UnionEntryNode",
    "UnionNode",
    "focus_subquery",
    "get_query",
    "mask_query",
    "merge_asts",
    "merge_queries",
    "parse",
    "unparse",
]
