"""Query algebra over plain queries and ASTs."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
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
    has_query,
)
from eql.query_language.classifier import classify
from eql.query_language.errors import QueryMergeError
from eql.query_language.parser import parse
from eql.query_language.unparser import unparse
from eql.values import ListForm, freeze, is_sequence


logger = logging.getLogger("eql")


def get_query(node: Node) -> object:
    """Rebuild the plain query value for an AST node or sub-tree.

    Joins and mutation joins yield their sub-query (derived from children, so
    edited children are reflected); other nodes yield their surface form.

    Raises:
        TypeError: If node is not an AST node
    """
    if not isinstance(node, Node):
        raise TypeError(f"Not an AST node: {node!r}")
    rendered = unparse(node)
    if has_query(node):
        ((_, query),) = cast(Mapping[object, object], rendered).items()
        return query
    return rendered


def focus_subquery(query: object, key_path: Sequence[object]) -> object | None:
    """Return the sub-query reachable along key_path, or None.

    On a sequence, a key selects the join whose dispatch key (or full key)
    equals it. On a union mapping, a key selects the union branch. Unbounded
    recursion resolves to the enclosing query; bounded recursion resolves to
    the enclosing query with the depth decremented, stopping at zero.
    """
    current = get_query(query) if isinstance(query, Node) else query
    for depth, key in enumerate(key_path):
        current = _focus_step(current, key)
        if current is None:
            logger.debug("Focus path %r not found at step %d", list(key_path), depth)
            return None
    return current


def _focus_step(query: object, key: object) -> object | None:
    if isinstance(query, Mapping):
        for union_key, branch in query.items():
            if union_key == key:
                return branch
        return None
    if not is_sequence(query):
        return None

    elements = cast(Sequence[object], query)
    for index, element in enumerate(elements):
        classification = classify(element, (index,))
        if classification.query_kind is None:
            continue
        if key not in (classification.dispatch_key, classification.key):
            continue
        match classification.query_kind:
            case QueryKind.UNBOUNDED_RECURSION:
                return elements
            case QueryKind.BOUNDED_RECURSION:
                remaining = cast(int, classification.query)
                if remaining == 0:
                    return None
                return [
                    *elements[:index],
                    _replace_join_value(element, remaining - 1),
                    *elements[index + 1 :],
                ]
            case _:
                return classification.query
    return None


def _replace_join_value(element: object, value: object) -> object:
    """Return a join element with its query slot replaced, keeping its spelling."""
    if isinstance(element, ListForm):
        target, params = element.items
        return ListForm((_replace_join_value(target, value), params))
    ((join_key, _),) = cast(Mapping[object, object], element).items()
    return {join_key: value}


def merge_queries(left: object, right: object) -> list[object]:
    """Merge two queries, keeping the left query's order first.

    Raises:
        QueryParseError: If either query is malformed
        QueryMergeError: If the same key appears with incompatible shapes
    """
    merged = merge_asts(parse(left), parse(right))
    return cast(list[object], unparse(merged))


def merge_asts(left: RootNode, right: RootNode) -> RootNode:
    """Merge two ASTs by key, combining nested joins."""
    return RootNode(_merge_children(left.children, right.children), left.meta)


def _node_key(node: Node) -> object:
    if isinstance(node, PropNode | JoinNode | CallNode):
        return node.key
    if isinstance(node, UnionEntryNode):
        return node.union_key
    raise QueryMergeError(f"Cannot merge node of kind {node.kind}")


def _merge_children(left: tuple[Node, ...], right: tuple[Node, ...]) -> tuple[Node, ...]:
    merged = list(left)
    positions = {freeze(_node_key(node)): index for index, node in enumerate(merged)}
    for node in right:
        key = freeze(_node_key(node))
        index = positions.get(key)
        if index is None:
            positions[key] = len(merged)
            merged.append(node)
        else:
            merged[index] = _merge_nodes(merged[index], node)
    return tuple(merged)


def _merge_nodes(left: Node, right: Node) -> Node:
    """Merge two nodes sharing the same key."""
    if isinstance(left, UnionEntryNode) and isinstance(right, UnionEntryNode):
        entry = replace(left, children=_merge_children(left.children, right.children))
        return replace(entry, query=unparse(entry))

    left_params = getattr(left, "params", None)
    right_params = getattr(right, "params", None)
    if left_params != right_params:
        raise QueryMergeError(
            f"Conflicting params for {_node_key(left)}: {left_params!r} != {right_params!r}"
        )
    if isinstance(right, PropNode):
        return left
    if isinstance(left, PropNode):
        return right
    if type(left) is not type(right):
        raise QueryMergeError(f"Cannot merge {left.kind} with {right.kind} for {_node_key(left)}")
    return _merge_queries_of(cast(JoinNode | CallNode, left), cast(JoinNode | CallNode, right))


def _merge_queries_of(left: JoinNode | CallNode, right: JoinNode | CallNode) -> Node:
    if right.query_kind is None:
        return left
    if left.query_kind is None:
        return right
    if left.query_kind != right.query_kind:
        raise QueryMergeError(
            f"Cannot merge {left.query_kind} with {right.query_kind} for {left.key}"
        )

    match left.query_kind:
        case QueryKind.SUBQUERY:
            children = _merge_children(left.children or (), right.children or ())
        case QueryKind.UNION:
            left_union = cast(UnionNode, (left.children or ())[0])
            right_union = cast(UnionNode, (right.children or ())[0])
            entries = cast(
                tuple[UnionEntryNode, ...],
                _merge_children(left_union.children, right_union.children),
            )
            union = UnionNode(query={}, children=entries)
            children = (replace(union, query=cast(Mapping[object, object], unparse(union))),)
        case _:
            if left.query != right.query:
                raise QueryMergeError(
                    f"Conflicting recursion for {left.key}: {left.query!r} != {right.query!r}"
                )
            return left

    merged = replace(left, children=children)
    return replace(merged, query=get_query(merged))


def mask_query(query: object, mask: object) -> list[object]:
    """Restrict query to the elements whose keys appear in mask.

    Joins present in both are masked recursively; a plain key in the mask
    keeps the whole element.
    """
    root = parse(query)
    mask_root = parse(mask)
    masked = RootNode(_mask_children(root.children, mask_root.children), root.meta)
    return cast(list[object], unparse(masked))


def _mask_children(children: tuple[Node, ...], mask: tuple[Node, ...]) -> tuple[Node, ...]:
    mask_by_key = {freeze(_node_key(node)): node for node in mask}
    kept: list[Node] = []
    for node in children:
        mask_node = mask_by_key.get(freeze(_node_key(node)))
        if mask_node is None:
            continue
        kept.append(_mask_node(node, mask_node))
    return tuple(kept)


def _mask_node(node: Node, mask_node: Node) -> Node:
    if isinstance(node, UnionEntryNode) and isinstance(mask_node, UnionEntryNode):
        entry = replace(node, children=_mask_children(node.children, mask_node.children))
        return replace(entry, query=unparse(entry))
    if not isinstance(node, JoinNode | CallNode) or not isinstance(mask_node, JoinNode | CallNode):
        return node
    if node.query_kind != mask_node.query_kind:
        return node

    match node.query_kind:
        case QueryKind.SUBQUERY:
            children = _mask_children(node.children or (), mask_node.children or ())
        case QueryKind.UNION:
            union = cast(UnionNode, (node.children or ())[0])
            mask_union = cast(UnionNode, (mask_node.children or ())[0])
            entries = cast(
                tuple[UnionEntryNode, ...], _mask_children(union.children, mask_union.children)
            )
            masked_union = UnionNode(query={}, children=entries)
            children = (
                replace(masked_union, query=cast(Mapping[object, object], unparse(masked_union))),
            )
        case _:
            return node

    masked = replace(node, children=children)
    return replace(masked, query=get_query(masked))
