"""Convert AST nodes back into canonical query values."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import cast

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
from eql.values import ListForm, is_sequence


def unparse(node: Node) -> object:
    """Convert an AST node into its canonical surface value.

    Parameters are always wrapped around the key, metadata is dropped, and
    recursion markers and union mappings are emitted verbatim.

    Raises:
        TypeError: If node is not an AST node
    """
    rendered: dict[int, object] = {}
    stack: list[tuple[Node, bool]] = [(node, False)]
    while stack:
        current, expanded = stack.pop()
        children = child_nodes(current)
        if children and not expanded:
            stack.append((current, True))
            stack.extend((child, False) for child in reversed(children))
            continue
        rendered[id(current)] = _render(current, [rendered[id(child)] for child in children])
    return rendered[id(node)]


def child_nodes(node: Node) -> tuple[Node, ...]:
    """Return the direct children of a node."""
    if isinstance(node, RootNode | JoinNode | UnionNode | UnionEntryNode):
        return node.children
    if isinstance(node, CallNode):
        return node.children or ()
    if isinstance(node, PropNode):
        return ()
    raise TypeError(f"Not an AST node: {node!r}")


def _render(node: Node, children: list[object]) -> object:
    """Render one node given its already rendered children."""
    if isinstance(node, RootNode | UnionEntryNode):
        return children
    if isinstance(node, PropNode):
        return wrap_key(node.key, node.params)
    if isinstance(node, JoinNode):
        return {wrap_key(node.key, node.params, map_key=True): _join_value(node, children)}
    if isinstance(node, CallNode):
        call = ListForm((node.dispatch_key, dict(node.params)))
        if node.query_kind is None:
            return call
        return {call: _join_value(node, children)}
    if isinstance(node, UnionNode):
        return {
            entry.union_key: branch for entry, branch in zip(node.children, children, strict=True)
        }
    raise TypeError(f"Not an AST node: {node!r}")


def wrap_key(
    key: object,
    params: Mapping[object, object] | None,
    map_key: bool = False,
) -> object:
    """Return the surface key, wrapped with params when present.

    Idents are emitted as lists, except as bare mapping keys where they must
    be hashable tuples.
    """
    if is_sequence(key):
        items = cast(Sequence[object], key)
        surface_key: object = tuple(items) if map_key and params is None else list(items)
    else:
        surface_key = key
    if params is None:
        return surface_key
    return ListForm((surface_key, dict(params)))


def _join_value(node: JoinNode | CallNode, children: list[object]) -> object:
    match node.query_kind:
        case QueryKind.SUBQUERY:
            return children
        case QueryKind.UNION:
            if children:
                return children[0]
            return _plain(node.query)
        case _:
            return node.query


def _plain(value: object) -> object:
    """Copy a value into plain lists and dicts."""
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value
