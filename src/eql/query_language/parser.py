"""AST builder for query transactions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TypeAlias, cast

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
from eql.query_language.classifier import Classification, classify
from eql.query_language.errors import Path, UnclassifiableElementError
from eql.values import is_sequence, meta_of


logger = logging.getLogger("eql")


Expander: TypeAlias = Callable[[object, Path, Mapping[str, object] | None], "Node | _Frame"]
Finisher: TypeAlias = Callable[[tuple[Node, ...]], Node]


@dataclass(slots=True)
class _Frame:
    """Pending node whose children are still being built."""

    items: list[tuple[object, Path]]
    expand: Expander
    finish: Finisher
    meta: Mapping[str, object] | None
    children: list[Node] = field(default_factory=list)
    index: int = 0


def parse(value: object) -> RootNode:
    """Parse a transaction into an AST.

    The tree is built with an explicit work stack, so nesting depth is not
    limited by the interpreter's recursion limit.

    Args:
        value: Transaction sequence from the generic value model

    Returns:
        Root node of the AST

    Raises:
        QueryParseError: On the first malformed element
    """
    root_meta = meta_of(value)
    if not is_sequence(value):
        raise UnclassifiableElementError(value, (), root_meta, "transaction must be a sequence")
    transaction = cast(Sequence[object], value)

    def finish_root(children: tuple[Node, ...]) -> Node:
        return RootNode(children, root_meta)

    stack = [_sequence_frame(transaction, (), root_meta, finish_root)]
    while True:
        frame = stack[-1]
        if frame.index < len(frame.items):
            element, path = frame.items[frame.index]
            frame.index += 1
            step = frame.expand(element, path, frame.meta)
            if isinstance(step, _Frame):
                stack.append(step)
            else:
                frame.children.append(step)
            continue

        stack.pop()
        node = frame.finish(tuple(frame.children))
        if not stack:
            logger.debug("Parsed transaction with %d top-level elements", len(transaction))
            return cast(RootNode, node)
        stack[-1].children.append(node)


def _sequence_frame(
    items: Sequence[object],
    path: Path,
    meta: Mapping[str, object] | None,
    finish: Finisher,
) -> _Frame:
    return _Frame(
        items=[(element, (*path, index)) for index, element in enumerate(items)],
        expand=_expand_element,
        finish=finish,
        meta=meta,
    )


def _expand_element(
    element: object,
    path: Path,
    context_meta: Mapping[str, object] | None,
) -> Node | _Frame:
    """Classify one element into a finished node or a pending frame."""
    classification = classify(element, path, context_meta)
    query_kind = classification.query_kind
    if query_kind is None:
        if classification.kind == "call":
            params = classification.params if classification.params is not None else {}
            return CallNode(
                classification.dispatch_key,
                classification.key,
                params,
                meta=classification.meta,
            )
        return PropNode(
            classification.dispatch_key,
            classification.key,
            classification.params,
            classification.meta,
        )

    if query_kind in (QueryKind.UNBOUNDED_RECURSION, QueryKind.BOUNDED_RECURSION):
        return _join_node(classification, ())

    def finish_join(children: tuple[Node, ...]) -> Node:
        return _join_node(classification, children)

    child_path = (*path, classification.key)
    frame_meta = meta_of(classification.query) or classification.meta or context_meta
    if query_kind == QueryKind.UNION:
        return _Frame(
            items=[(classification.query, child_path)],
            expand=_expand_union,
            finish=finish_join,
            meta=frame_meta,
        )
    return _sequence_frame(
        cast(Sequence[object], classification.query), child_path, frame_meta, finish_join
    )


def _join_node(classification: Classification, children: tuple[Node, ...]) -> Node:
    if classification.kind == "call":
        return CallNode(
            classification.dispatch_key,
            classification.key,
            classification.params if classification.params is not None else {},
            query=classification.query,
            query_kind=classification.query_kind,
            children=children,
            meta=classification.meta,
        )
    return JoinNode(
        classification.dispatch_key,
        classification.key,
        classification.query,
        cast(QueryKind, classification.query_kind),
        children,
        classification.params,
        classification.meta,
    )


def _expand_union(
    union_query: object,
    path: Path,
    context_meta: Mapping[str, object] | None,
) -> _Frame:
    """Build a frame whose children are the union's entries."""
    branches = cast(Mapping[object, object], union_query)

    def finish_union(children: tuple[Node, ...]) -> Node:
        return UnionNode(branches, cast(tuple[UnionEntryNode, ...], children))

    return _Frame(
        items=[((union_key, branch), (*path, union_key)) for union_key, branch in branches.items()],
        expand=_expand_union_entry,
        finish=finish_union,
        meta=context_meta,
    )


def _expand_union_entry(
    entry: object,
    path: Path,
    context_meta: Mapping[str, object] | None,
) -> _Frame:
    union_key, branch = cast(tuple[object, Sequence[object]], entry)

    def finish_entry(children: tuple[Node, ...]) -> Node:
        return UnionEntryNode(union_key, branch, children)

    return _sequence_frame(branch, path, meta_of(branch) or context_meta, finish_entry)
