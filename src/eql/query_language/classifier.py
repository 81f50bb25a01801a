"""Shape classifier for transaction elements.

Each element of a transaction, join sub-query, or union branch is classified
from its shape alone, in a fixed precedence order:

1. keyword -> prop
2. ident tuple `[:key value]` -> prop keyed by the whole tuple
3. `(target params)` -> target classified, then params attached
4. single-entry mapping -> join (or mutation join when keyed by a call)
5. mapping with any other number of entries -> invalid join
6. `(symbol params)` -> call
7. anything else -> unclassifiable

Classification is shallow: a join's sub-query elements are left for the
builder to classify.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Literal, TypeAlias

from eql.query_language.ast import QueryKind
from eql.query_language.errors import (
    InvalidCallShapeError,
    InvalidJoinShapeError,
    InvalidParamsError,
    InvalidRecursionMarkerError,
    Path,
    UnclassifiableElementError,
)
from eql.values import (
    Keyword,
    ListForm,
    Symbol,
    is_ident,
    is_recursion_marker,
    is_sequence,
    meta_of,
)


ClassifiedKind: TypeAlias = Literal["prop", "join", "call"]


@dataclass(frozen=True, slots=True)
class Classification:
    """Node kind and fields extracted from one element."""

    kind: ClassifiedKind
    dispatch_key: object
    key: object
    params: Mapping[object, object] | None = None
    query: object = None
    query_kind: QueryKind | None = None
    meta: Mapping[str, object] | None = field(default=None, compare=False)


def classify(
    element: object,
    path: Path,
    context_meta: Mapping[str, object] | None = None,
) -> Classification:
    """Classify one transaction element.

    Args:
        element: Surface element from a transaction, sub-query, or union branch
        path: Position of the element from the transaction root
        context_meta: Metadata of the enclosing collection, used for error positions

    Returns:
        Classification describing the node kind and its fields

    Raises:
        QueryParseError: If the element has no valid shape
    """
    meta = meta_of(element) or context_meta
    if isinstance(element, Keyword):
        return Classification("prop", element, element)
    if is_recursion_marker(element):
        raise UnclassifiableElementError(
            element, path, meta, "recursion marker is only valid as a join value"
        )
    if isinstance(element, Symbol):
        return Classification("call", element, element, params={})
    if is_ident(element):
        return _classify_ident(element)
    if isinstance(element, ListForm):
        return _classify_list_form(element, path, meta)
    if isinstance(element, Mapping):
        return _classify_join(element, path, meta)
    raise UnclassifiableElementError(element, path, meta)


def _classify_ident(element: object) -> Classification:
    ident = tuple(element)  # type: ignore[call-overload]
    return Classification("prop", ident[0], ident, meta=meta_of(element))


def _classify_list_form(
    form: ListForm,
    path: Path,
    meta: Mapping[str, object] | None,
) -> Classification:
    if not form.items:
        raise UnclassifiableElementError(form, path, meta, "empty list form")
    if _is_call_head(form.items[0]):
        return _classify_call(form, path, meta)

    target, params = _split_params(form, path, meta)
    if isinstance(target, Mapping):
        join = _classify_join(target, path, meta_of(target) or meta)
        if join.params is not None:
            raise InvalidParamsError(form, path, meta, "parameters given on both key and join")
        return replace(join, params=params, meta=form.meta or join.meta)

    dispatch_key, key = _classify_plain_key(target, path, meta)
    return Classification("prop", dispatch_key, key, params=params, meta=form.meta)


def _is_call_head(value: object) -> bool:
    return isinstance(value, Symbol) and not is_recursion_marker(value)


def _split_params(
    form: ListForm,
    path: Path,
    meta: Mapping[str, object] | None,
) -> tuple[object, Mapping[object, object]]:
    """Split a parametrized expression into its target and params."""
    if len(form.items) != 2:
        raise InvalidParamsError(form, path, meta, "expected (target params)")
    target, params = form.items
    if not isinstance(params, Mapping):
        raise InvalidParamsError(form, path, meta, "params must be a mapping")
    return (target, params)


def _classify_call(
    form: ListForm,
    path: Path,
    meta: Mapping[str, object] | None,
) -> Classification:
    """Classify `(symbol)` or `(symbol params)` as a call."""
    symbol = form.items[0]
    if len(form.items) == 1:
        return Classification("call", symbol, symbol, params={}, meta=form.meta)
    if len(form.items) != 2:
        raise InvalidCallShapeError(form, path, meta, "expected (symbol params)")
    params = form.items[1]
    if not isinstance(params, Mapping):
        raise InvalidCallShapeError(form, path, meta, "call params must be a mapping")
    return Classification("call", symbol, symbol, params=params, meta=form.meta)


def _classify_plain_key(
    value: object,
    path: Path,
    meta: Mapping[str, object] | None,
) -> tuple[object, object]:
    """Return (dispatch_key, key) for a keyword or ident."""
    if isinstance(value, Keyword):
        return (value, value)
    if is_ident(value):
        ident = tuple(value)  # type: ignore[call-overload]
        return (ident[0], ident)
    raise UnclassifiableElementError(value, path, meta, "expected a keyword or ident")


def _classify_join_key(
    value: object,
    path: Path,
    meta: Mapping[str, object] | None,
) -> Classification:
    """Classify the key of a join mapping.

    Params stay None unless the key itself carries a params map, so params
    wrapped around the whole join can still be attached.
    """
    if isinstance(value, Symbol) and _is_call_head(value):
        return Classification("call", value, value)
    if isinstance(value, ListForm):
        if not value.items:
            raise UnclassifiableElementError(value, path, meta, "empty list form")
        if _is_call_head(value.items[0]):
            call = _classify_call(value, path, meta)
            return call if len(value.items) == 2 else replace(call, params=None)
        target, params = _split_params(value, path, meta)
        dispatch_key, key = _classify_plain_key(target, path, meta)
        return Classification("prop", dispatch_key, key, params=params)
    dispatch_key, key = _classify_plain_key(value, path, meta)
    return Classification("prop", dispatch_key, key)


def _classify_join(
    mapping: Mapping[object, object],
    path: Path,
    meta: Mapping[str, object] | None,
) -> Classification:
    if len(mapping) != 1:
        raise InvalidJoinShapeError(mapping, path, meta, f"found {len(mapping)} entries")
    ((join_key, query),) = mapping.items()
    base = _classify_join_key(join_key, path, meta)
    query_kind = classify_join_query(query, (*path, join_key), meta)
    kind: ClassifiedKind = "call" if base.kind == "call" else "join"
    return replace(
        base,
        kind=kind,
        query=query,
        query_kind=query_kind,
        meta=meta_of(mapping),
    )


def classify_join_query(
    query: object,
    path: Path,
    meta: Mapping[str, object] | None = None,
) -> QueryKind:
    """Classify the value in a join's query slot.

    Mappings whose values are all sequences are unions. Any other mapping is
    rejected: as a malformed join when it does not have exactly one entry,
    otherwise as an invalid join value.
    """
    if is_recursion_marker(query):
        return QueryKind.UNBOUNDED_RECURSION
    if isinstance(query, int) and not isinstance(query, bool):
        if query < 0:
            raise InvalidRecursionMarkerError(
                query, path, meta, "recursion depth must be non-negative"
            )
        return QueryKind.BOUNDED_RECURSION
    if is_sequence(query):
        return QueryKind.SUBQUERY
    if isinstance(query, Mapping):
        if all(is_sequence(branch) for branch in query.values()):
            return QueryKind.UNION
        if len(query) != 1:
            raise InvalidJoinShapeError(
                query, path, meta_of(query) or meta, f"found {len(query)} entries"
            )
        raise InvalidRecursionMarkerError(
            query, path, meta_of(query) or meta, "union branches must be sequences"
        )
    raise InvalidRecursionMarkerError(
        query, path, meta, "expected a sub-query, union, recursion marker, or depth"
    )
