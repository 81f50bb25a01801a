"""Reader and writer for query notation text (an EDN subset)."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import replace
from typing import cast

from parsy import ParseError, Parser, eof, forward_declaration, regex, seq, string

from eql.query_language.ast import RootNode
from eql.query_language.errors import NotationParseError
from eql.query_language.parser import parse
from eql.values import Keyword, ListForm, Map, Symbol, Vector, freeze


_DELIMITERS = r"\s,()\[\]{}\";"
_TOKEN_END = rf"(?![^{_DELIMITERS}])"


def _parse_line_and_column(line_info: str) -> tuple[int, int]:
    """Parse line and column from parsy line info string."""
    line_text, sep, column_text = line_info.partition(":")
    if sep == "":
        return (0, 0)
    if not line_text.isdigit() or not column_text.isdigit():
        return (0, 0)
    return (int(line_text), int(column_text))


def _format_parse_error(text: str, exc: ParseError) -> str:
    """Build parse error message with a pointer to the failing position."""
    line_number, column_number = _parse_line_and_column(exc.line_info())
    text_lines = text.splitlines()
    if not text_lines:
        text_lines = [text]

    error_line = text_lines[line_number] if 0 <= line_number < len(text_lines) else text
    pointer = " " * max(column_number, 0) + "^"
    return f"Invalid query notation: {exc}\n\n{error_line}\n{pointer}"


def _decode_string(token_value: str) -> str:
    """Decode a double-quoted string literal token.

    Strings may span lines, so raw control characters are accepted.
    """
    try:
        decoded = json.loads(token_value, strict=False)
    except json.JSONDecodeError as exc:
        raise NotationParseError(f"Invalid string literal {token_value!r}: {exc.msg}") from exc
    if isinstance(decoded, str):
        return decoded
    raise NotationParseError(f"Invalid string literal {token_value!r}")


def _decode_number(token_value: str) -> int | float:
    if any(marker in token_value for marker in ".eE"):
        return float(token_value)
    return int(token_value)


def _position_meta(start: tuple[int, int]) -> dict[str, object]:
    """Build 1-based line/column metadata from a parsy mark."""
    line, column = start
    return {"line": line + 1, "column": column + 1}


def _lexeme(parser: Parser) -> Parser:
    """Consume optional whitespace, commas and comments after parser."""
    ws = regex(r"(?:[\s,]+|;[^\n]*)*")
    return parser << ws


def _symbol(value: str) -> Parser:
    """Build a delimiter token parser."""
    return _lexeme(string(value))


def _build_vector(mark: tuple[tuple[int, int], list[object], tuple[int, int]]) -> Vector:
    start, items, _end = mark
    return Vector(items, meta=_position_meta(start))


def _build_list_form(mark: tuple[tuple[int, int], list[object], tuple[int, int]]) -> ListForm:
    start, items, _end = mark
    return ListForm(tuple(items), meta=_position_meta(start))


def _map_key(key: object) -> object:
    """Convert a map key to a hashable value; vectors become tuples."""
    if isinstance(key, list):
        return tuple(_map_key(item) for item in key)
    if isinstance(key, Mapping):
        raise NotationParseError(f"Mappings cannot be used as map keys: {key!r}")
    return key


def _build_map(mark: tuple[tuple[int, int], list[object], tuple[int, int]]) -> Map:
    start, items, _end = mark
    if len(items) % 2 != 0:
        raise NotationParseError(
            f"Map literal must contain an even number of forms at line {start[0] + 1}"
        )
    result = Map(meta=_position_meta(start))
    seen: set[object] = set()
    for index in range(0, len(items), 2):
        key = _map_key(items[index])
        frozen_key = freeze(key)
        if frozen_key in seen:
            raise NotationParseError(f"Duplicate map key {key!r} at line {start[0] + 1}")
        seen.add(frozen_key)
        result[key] = items[index + 1]
    return result


def _attach_meta(meta_form: object, target: object) -> object:
    """Attach `^{...}` or `^:flag` metadata to a collection form."""
    if isinstance(meta_form, Keyword):
        attached: dict[object, object] = {meta_form: True}
    elif isinstance(meta_form, Mapping):
        attached = dict(meta_form)
    else:
        raise NotationParseError(f"Metadata must be a keyword or a map: {meta_form!r}")

    if isinstance(target, Vector | Map):
        target.meta = {**(target.meta or {}), **attached}
        return target
    if isinstance(target, ListForm):
        return replace(target, meta={**(target.meta or {}), **attached})
    raise NotationParseError(f"Metadata can only be attached to collections: {target!r}")


def _make_reader() -> Parser:
    """Create the notation form parser."""
    ws = regex(r"(?:[\s,]+|;[^\n]*)*")
    form = forward_declaration()

    nil_literal = _lexeme(regex(rf"nil{_TOKEN_END}")).result(None)
    true_literal = _lexeme(regex(rf"true{_TOKEN_END}")).result(True)
    false_literal = _lexeme(regex(rf"false{_TOKEN_END}")).result(False)
    number = _lexeme(regex(rf"[+-]?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?{_TOKEN_END}")).map(
        _decode_number
    )
    string_literal = _lexeme(regex(r'"(?:[^"\\]|\\.)*"')).map(_decode_string)
    keyword = _lexeme(regex(rf":[^{_DELIMITERS}:][^{_DELIMITERS}]*")).map(
        lambda token: Keyword(token[1:])
    )
    symbol = _lexeme(regex(rf"[^{_DELIMITERS}\d:#^][^{_DELIMITERS}]*")).map(Symbol)

    vector = (_symbol("[") >> form.many() << _symbol("]")).mark().map(_build_vector)
    list_form = (_symbol("(") >> form.many() << _symbol(")")).mark().map(_build_list_form)
    map_form = (_symbol("{") >> form.many() << _symbol("}")).mark().map(_build_map)
    with_meta = seq(_symbol("^") >> form, form).combine(_attach_meta)

    form.become(
        (
            with_meta
            | vector
            | list_form
            | map_form
            | nil_literal
            | true_literal
            | false_literal
            | number
            | string_literal
            | keyword
            | symbol
        ).desc("form")
    )
    return ws >> form << eof


NOTATION_READER = _make_reader()


def read_string(text: str) -> object:
    """Read one notation form from text into the generic value model.

    Raises:
        NotationParseError: If text is not a single well-formed form
    """
    try:
        return NOTATION_READER.parse(text)
    except ParseError as exc:
        raise NotationParseError(_format_parse_error(text, exc)) from exc


def parse_text(text: str) -> RootNode:
    """Read notation text and parse it into an AST."""
    return parse(read_string(text))


def dumps(value: object) -> str:
    """Write a generic value as notation text.

    Raises:
        TypeError: If value contains something the notation cannot express
    """
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, Keyword | Symbol):
        return str(value)
    if isinstance(value, ListForm):
        return "(" + " ".join(dumps(item) for item in value.items) + ")"
    if isinstance(value, Mapping):
        entries = cast(Mapping[object, object], value).items()
        return "{" + ", ".join(f"{dumps(key)} {dumps(item)}" for key, item in entries) + "}"
    if isinstance(value, list | tuple):
        return "[" + " ".join(dumps(item) for item in value) + "]"
    raise TypeError(f"Cannot write value as notation: {value!r}")
