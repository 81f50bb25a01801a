"""AST nodes for query transactions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar


class QueryKind(StrEnum):
    """Meaning of the value in a join's query slot."""

    SUBQUERY = "subquery"
    UNBOUNDED_RECURSION = "unbounded-recursion"
    BOUNDED_RECURSION = "bounded-recursion"
    UNION = "union"


@dataclass(frozen=True, slots=True)
class Node:
    """Base AST node type; subclasses set their kind tag."""

    kind: ClassVar[str]


@dataclass(frozen=True, slots=True)
class RootNode(Node):
    """Transaction root."""

    children: tuple[Node, ...]
    meta: Mapping[str, object] | None = field(default=None, compare=False)

    kind: ClassVar[str] = "root"


@dataclass(frozen=True, slots=True)
class PropNode(Node):
    """Property read, addressed by a plain key or an ident."""

    dispatch_key: object
    key: object
    params: Mapping[object, object] | None = None
    meta: Mapping[str, object] | None = field(default=None, compare=False)

    kind: ClassVar[str] = "prop"


@dataclass(frozen=True, slots=True)
class JoinNode(Node):
    """Key with a nested sub-query, union, or recursion marker."""

    dispatch_key: object
    key: object
    query: object
    query_kind: QueryKind
    children: tuple[Node, ...] = ()
    params: Mapping[object, object] | None = None
    meta: Mapping[str, object] | None = field(default=None, compare=False)

    kind: ClassVar[str] = "join"


@dataclass(frozen=True, slots=True)
class UnionEntryNode(Node):
    """One branch of a union."""

    union_key: object
    query: object
    children: tuple[Node, ...] = ()

    kind: ClassVar[str] = "union-entry"


@dataclass(frozen=True, slots=True)
class UnionNode(Node):
    """Polymorphic sub-query dispatching on union keys."""

    query: Mapping[object, object]
    children: tuple[UnionEntryNode, ...] = ()

    kind: ClassVar[str] = "union"


@dataclass(frozen=True, slots=True)
class CallNode(Node):
    """Mutation call, optionally with a return-shape sub-query."""

    dispatch_key: object
    key: object
    params: Mapping[object, object]
    query: object = None
    query_kind: QueryKind | None = None
    children: tuple[Node, ...] | None = None
    meta: Mapping[str, object] | None = field(default=None, compare=False)

    kind: ClassVar[str] = "call"


def has_query(node: Node) -> bool:
    """Return whether node carries a nested query."""
    if isinstance(node, JoinNode):
        return True
    return isinstance(node, CallNode) and node.query_kind is not None
