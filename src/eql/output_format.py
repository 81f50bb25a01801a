"""Output formats and renderers for ASTs and query values."""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.tree import Tree

from eql.notation import dumps
from eql.query_language.ast import (
    CallNode,
    JoinNode,
    Node,
    PropNode,
    RootNode,
    UnionEntryNode,
    UnionNode,
)
from eql.query_language.unparser import child_nodes, unparse


DEFAULT_OUTPUT_THEME = "github-dark"

_SYNTAX_LANGUAGES: dict[str, str] = {
    "edn": "clojure",
    "json": "json",
}


class OutputFormat(StrEnum):
    """Supported output formats for the parse command."""

    TREE = "tree"
    JSON = "json"
    EDN = "edn"


class OutputFormatError(RuntimeError):
    """Raised when output formatting fails."""


@dataclass(frozen=True)
class OutputOperation:
    """One prepared output operation."""

    kind: str
    text: str | None = None
    renderable: object | None = None
    markup: bool = False


@dataclass(frozen=True)
class PreparedOutput:
    """Prepared output operations ready for console rendering."""

    operations: tuple[OutputOperation, ...]


def should_use_color(color_flag: bool | None) -> bool:
    """Determine if color should be used based on flag and TTY detection."""
    if color_flag is None:
        return sys.stdout.isatty()
    return color_flag


def build_console(color_enabled: bool) -> Console:
    """Build the console used for command output."""
    return Console(
        no_color=not color_enabled,
        force_terminal=color_enabled,
        highlight=False,
        soft_wrap=True,
    )


def parse_output_format(value: str) -> OutputFormat:
    """Normalize an --out value.

    Raises:
        OutputFormatError: If value is not a supported format
    """
    normalized = value.strip().lower()
    try:
        return OutputFormat(normalized)
    except ValueError as exc:
        supported = ", ".join(fmt.value for fmt in OutputFormat)
        raise OutputFormatError(f"--out must be one of: {supported}\nGot: {value}") from exc


def _node_fields(node: Node) -> dict[str, object]:
    """Return the kind-specific fields of a node, rendered as notation text."""
    fields: dict[str, object] = {}
    if isinstance(node, PropNode | JoinNode | CallNode):
        fields["dispatch_key"] = dumps(node.dispatch_key)
        fields["key"] = dumps(node.key)
        if node.params is not None:
            fields["params"] = dumps(node.params)
    if isinstance(node, UnionEntryNode):
        fields["union_key"] = dumps(node.union_key)
    if isinstance(node, JoinNode | CallNode) and node.query_kind is not None:
        fields["query_kind"] = node.query_kind.value
    if isinstance(node, JoinNode | CallNode | UnionNode | UnionEntryNode):
        query = node.query
        if query is not None:
            fields["query"] = dumps(query)
    meta = getattr(node, "meta", None)
    if isinstance(meta, Mapping):
        fields["meta"] = {str(key): _json_scalar(value) for key, value in meta.items()}
    return fields


def _json_scalar(value: object) -> object:
    if value is None or isinstance(value, bool | int | float | str):
        return value
    return dumps(value)


def ast_to_json_dict(node: Node) -> dict[str, object]:
    """Convert an AST into JSON-compatible nested dicts."""
    root_entry: dict[str, object] = {"type": node.kind, **_node_fields(node)}
    stack: list[tuple[Node, dict[str, object]]] = [(node, root_entry)]
    while stack:
        current, entry = stack.pop()
        if isinstance(current, PropNode) or (
            isinstance(current, CallNode) and current.children is None
        ):
            continue
        children: list[object] = []
        entry["children"] = children
        for child in child_nodes(current):
            child_entry: dict[str, object] = {"type": child.kind, **_node_fields(child)}
            children.append(child_entry)
            stack.append((child, child_entry))
    return root_entry


def _tree_label(node: Node, color_enabled: bool) -> str:
    """Build a one-line label for a node."""
    kind = node.kind
    styled_kind = f"[bold magenta]{kind}[/]" if color_enabled else kind
    if isinstance(node, RootNode):
        return styled_kind
    parts = [styled_kind]
    for name, value in _node_fields(node).items():
        if name in ("query", "meta"):
            continue
        text = escape(str(value))
        parts.append(f"[cyan]{name}[/]={text}" if color_enabled else f"{name}={text}")
    return " ".join(parts)


def build_ast_tree(node: Node, color_enabled: bool) -> Tree:
    """Build a rich Tree renderable for an AST."""
    tree = Tree(_tree_label(node, color_enabled), highlight=False)
    stack: list[tuple[Node, Tree]] = [(node, tree)]
    while stack:
        current, branch = stack.pop()
        for child in child_nodes(current):
            stack.append((child, branch.add(_tree_label(child, color_enabled))))
    return tree


def _prepare_output(
    text: str,
    color_enabled: bool,
    output_format: OutputFormat,
    out_theme: str,
) -> PreparedOutput:
    """Prepare output with syntax highlighting when available."""
    language = _SYNTAX_LANGUAGES.get(output_format.value)
    if color_enabled and language is not None:
        theme = out_theme.strip() or DEFAULT_OUTPUT_THEME
        return PreparedOutput(
            operations=(
                OutputOperation(
                    kind="console_print",
                    renderable=Syntax(text, language, theme=theme, word_wrap=True),
                ),
            )
        )
    return PreparedOutput(operations=(OutputOperation(kind="plain_write", text=text),))


def prepare_ast_output(
    node: Node,
    output_format: OutputFormat,
    color_enabled: bool,
    out_theme: str,
) -> PreparedOutput:
    """Prepare an AST for printing in the selected format."""
    if output_format == OutputFormat.TREE:
        tree = build_ast_tree(node, color_enabled)
        return PreparedOutput(operations=(OutputOperation(kind="console_print", renderable=tree),))
    if output_format == OutputFormat.JSON:
        text = json.dumps(ast_to_json_dict(node), indent=2, ensure_ascii=False)
        return _prepare_output(text, color_enabled, output_format, out_theme)
    return _prepare_output(dumps(unparse(node)), color_enabled, output_format, out_theme)


def prepare_value_output(value: object, color_enabled: bool, out_theme: str) -> PreparedOutput:
    """Prepare a plain query value for printing as notation text."""
    if value is None:
        return PreparedOutput(
            operations=(OutputOperation(kind="console_print", text="Not found", markup=False),)
        )
    try:
        text = dumps(value)
    except TypeError as exc:
        raise OutputFormatError(str(exc)) from exc
    return _prepare_output(text, color_enabled, OutputFormat.EDN, out_theme)


def _write_plain_output(console: Console, text: str) -> None:
    """Write plain output directly to console stream."""
    console.file.write(f"{text}\n")
    console.file.flush()


def print_prepared_output(console: Console, prepared_output: PreparedOutput) -> None:
    """Print already prepared output operations."""
    for operation in prepared_output.operations:
        if operation.kind == "plain_write":
            if operation.text is not None:
                _write_plain_output(console, operation.text)
            continue
        if operation.renderable is not None:
            console.print(operation.renderable)
            continue
        console.print(operation.text if operation.text is not None else "", markup=operation.markup)
