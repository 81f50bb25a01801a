"""Errors for query notation parsing and query algebra."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeAlias


Path: TypeAlias = tuple[object, ...]


class QueryLanguageError(Exception):
    """Base exception for query language failures."""


class NotationParseError(QueryLanguageError):
    """Raised when notation text cannot be read."""


class QueryMergeError(QueryLanguageError):
    """Raised when two queries cannot be merged."""


def format_path(path: Path) -> str:
    """Render a path of indices and keys for error messages."""
    if not path:
        return "<root>"
    return " > ".join(str(part) for part in path)


class QueryParseError(QueryLanguageError):
    """Raised when a transaction element has no valid AST shape."""

    description = "Invalid query element"

    def __init__(
        self,
        value: object,
        path: Path,
        meta: Mapping[str, object] | None = None,
        detail: str | None = None,
    ) -> None:
        self.value = value
        self.path = path
        self.meta = meta
        self.detail = detail
        super().__init__(self._build_message())

    @property
    def line(self) -> int | None:
        return _position(self.meta, "line")

    @property
    def column(self) -> int | None:
        return _position(self.meta, "column")

    def _build_message(self) -> str:
        message = f"{self.description} at {format_path(self.path)}: {self.value!r}"
        if self.detail:
            message = f"{message} ({self.detail})"
        if self.line is not None:
            message = f"{message} [line {self.line}, column {self.column}]"
        return message


class InvalidJoinShapeError(QueryParseError):
    """Raised when a mapping used as a join does not have exactly one entry."""

    description = "Join must be a single-entry mapping"


class InvalidParamsError(QueryParseError):
    """Raised when a parametrized expression is not `(target params-map)`."""

    description = "Invalid parameters"


class InvalidCallShapeError(QueryParseError):
    """Raised when a call form is not `(symbol params-map)`."""

    description = "Invalid call"


class InvalidRecursionMarkerError(QueryParseError):
    """Raised when a join value is not a query, union, or recursion marker."""

    description = "Invalid join query"


class UnclassifiableElementError(QueryParseError):
    """Raised when no node shape matches an element."""

    description = "Unrecognized query element"


def _position(meta: Mapping[str, object] | None, name: str) -> int | None:
    if meta is None:
        return None
    value = meta.get(name)
    return value if isinstance(value, int) else None
