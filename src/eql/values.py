"""Generic value model for query notation data."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Keyword:
    """Atomic key such as `:album/name`."""

    name: str

    @property
    def namespace(self) -> str | None:
        namespace, sep, _ = self.name.rpartition("/")
        return namespace if sep and namespace else None

    def __str__(self) -> str:
        return f":{self.name}"


@dataclass(frozen=True, slots=True)
class Symbol:
    """Non-keyword identifier, used to name mutations."""

    name: str

    def __str__(self) -> str:
        return self.name


RECURSION = Symbol("...")


@dataclass(frozen=True, slots=True)
class ListForm:
    """Parenthesized form such as `(:foo {:with "params"})`."""

    items: tuple[object, ...]
    meta: Mapping[str, object] | None = field(default=None, compare=False)

    def __hash__(self) -> int:
        return hash(("list-form", freeze(self.items)))

    def __len__(self) -> int:
        return len(self.items)


class Vector(list[object]):
    """Sequence value carrying reader metadata."""

    def __init__(self, values: object = (), meta: Mapping[str, object] | None = None) -> None:
        super().__init__(values)  # type: ignore[call-overload]
        self.meta = meta


class Map(dict[object, object]):
    """Mapping value carrying reader metadata."""

    def __init__(self, values: object = (), meta: Mapping[str, object] | None = None) -> None:
        super().__init__(values)  # type: ignore[call-overload]
        self.meta = meta


def meta_of(value: object) -> Mapping[str, object] | None:
    """Return metadata attached to a value, if any."""
    meta = getattr(value, "meta", None)
    if isinstance(meta, Mapping):
        return meta
    return None


def is_sequence(value: object) -> bool:
    """Return whether value is an ordered sequence (vector)."""
    return isinstance(value, list | tuple)


def is_scalar(value: object) -> bool:
    """Return whether value is neither a collection nor a list form."""
    return not isinstance(value, list | tuple | Mapping | ListForm | set | frozenset)


def is_ident(value: object) -> bool:
    """Return whether value is an ident tuple `[:key value]`."""
    return (
        is_sequence(value)
        and len(value) == 2  # type: ignore[arg-type]
        and isinstance(value[0], Keyword)  # type: ignore[index]
        and is_scalar(value[1])  # type: ignore[index]
    )


def is_recursion_marker(value: object) -> bool:
    """Return whether value is the unbounded recursion marker."""
    return isinstance(value, Symbol) and value == RECURSION


def freeze(value: object) -> object:
    """Convert nested collections into a hashable equivalent."""
    if isinstance(value, Mapping):
        return ("map", tuple((freeze(key), freeze(item)) for key, item in value.items()))
    if isinstance(value, list | tuple):
        return ("vector", tuple(freeze(item) for item in value))
    if isinstance(value, set | frozenset):
        return ("set", frozenset(freeze(item) for item in value))
    return value
