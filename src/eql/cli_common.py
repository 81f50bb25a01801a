"""Shared CLI helpers for reading queries and key paths."""

from __future__ import annotations

import logging
import sys

import click
import typer

from eql.notation import read_string
from eql.query_language import NotationParseError, QueryParseError, RootNode, parse


logger = logging.getLogger("eql")


def read_query_text(source: str) -> str:
    """Resolve a QUERY argument into notation text.

    `-` reads standard input and `@path` reads a file; anything else is taken
    as literal notation text.

    Raises:
        typer.BadParameter: If a referenced file cannot be read
    """
    if source == "-":
        return sys.stdin.read()
    if not source.startswith("@"):
        return source

    name = source[1:]
    try:
        with open(name, encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError as err:
        raise typer.BadParameter(f"File '{name}' not found") from err
    except PermissionError as err:
        raise typer.BadParameter(f"Permission denied for '{name}'") from err
    logger.info("Read query from %s (%d characters)", name, len(text))
    return text


def load_query_value(source: str) -> object:
    """Read a QUERY argument into the generic value model."""
    text = read_query_text(source)
    try:
        return read_string(text)
    except NotationParseError as exc:
        raise click.UsageError(str(exc)) from exc


def load_query_ast(source: str) -> RootNode:
    """Read and parse a QUERY argument into an AST."""
    value = load_query_value(source)
    try:
        return parse(value)
    except QueryParseError as exc:
        raise click.UsageError(str(exc)) from exc


def parse_key(text: str) -> object:
    """Read one key-path element such as `:album/tracks` or `[:user/id 1]`."""
    try:
        key = read_string(text)
    except NotationParseError as exc:
        raise typer.BadParameter(f"Invalid key '{text}'") from exc
    if isinstance(key, list):
        return tuple(key)
    return key


def parse_key_path(keys: list[str]) -> list[object]:
    """Read all key-path elements."""
    return [parse_key(text) for text in keys]
