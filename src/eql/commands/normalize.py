"""Normalize command printing the canonical spelling of a query."""

from __future__ import annotations

from dataclasses import dataclass

import typer

from eql import config as config_module
from eql.cli_common import load_query_ast
from eql.output_format import (
    DEFAULT_OUTPUT_THEME,
    build_console,
    prepare_value_output,
    print_prepared_output,
    should_use_color,
)
from eql.query_language import unparse


@dataclass
class NormalizeArgs:
    """Arguments for the normalize command."""

    query: str
    config: str
    color_flag: bool | None
    out_theme: str


def run_normalize(args: NormalizeArgs) -> None:
    """Run the normalize command."""
    color_enabled = should_use_color(args.color_flag)
    console = build_console(color_enabled)
    root = load_query_ast(args.query)
    prepared_output = prepare_value_output(unparse(root), color_enabled, args.out_theme)
    print_prepared_output(console, prepared_output)


def register(app: typer.Typer) -> None:
    """Register the normalize command."""

    @app.command("normalize")
    def normalize_command(
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
        out_theme: str = typer.Option(
            DEFAULT_OUTPUT_THEME,
            "--out-theme",
            help="Syntax theme for highlighted output",
        ),
    ) -> None:
        """Print a query in canonical form (params wrapped around keys, no metadata)."""
        args = NormalizeArgs(
            query=query,
            config=config,
            color_flag=color_flag,
            out_theme=out_theme,
        )
        config_module.log_applied_config_defaults("normalize")
        config_module.log_command_arguments(args, "normalize")
        run_normalize(args)
