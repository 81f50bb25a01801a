"""Parse command printing the AST of a query."""

from __future__ import annotations

from dataclasses import dataclass

import click
import typer

from eql import config as config_module
from eql.cli_common import load_query_ast
from eql.output_format import (
    DEFAULT_OUTPUT_THEME,
    OutputFormat,
    OutputFormatError,
    build_console,
    parse_output_format,
    prepare_ast_output,
    print_prepared_output,
    should_use_color,
)


@dataclass
class ParseArgs:
    """Arguments for the parse command."""

    query: str
    config: str
    color_flag: bool | None
    out: str
    out_theme: str


def run_parse(args: ParseArgs) -> None:
    """Run the parse command."""
    color_enabled = should_use_color(args.color_flag)
    console = build_console(color_enabled)
    try:
        output_format = parse_output_format(args.out)
    except OutputFormatError as exc:
        raise click.UsageError(str(exc)) from exc

    root = load_query_ast(args.query)
    prepared_output = prepare_ast_output(root, output_format, color_enabled, args.out_theme)
    print_prepared_output(console, prepared_output)


def register(app: typer.Typer) -> None:
    """Register the parse command."""

    @app.command("parse")
    def parse_command(
        query: str = typer.Argument(
            ..., metavar="QUERY", help="Query notation, '-' for stdin, or @FILE"
        ),
        config: str = typer.Option(
            config_module.DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="Config file name to load from current directory",
        ),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
        out: str = typer.Option(
            OutputFormat.TREE,
            "--out",
            help="Output format: tree, json, or edn",
        ),
        out_theme: str = typer.Option(
            DEFAULT_OUTPUT_THEME,
            "--out-theme",
            help="Syntax theme for highlighted output",
        ),
    ) -> None:
        """Print the AST of a query."""
        args = ParseArgs(
            query=query,
            config=config,
            color_flag=color_flag,
            out=out,
            out_theme=out_theme,
        )
        config_module.log_applied_config_defaults("parse")
        config_module.log_command_arguments(args, "parse")
        run_parse(args)
