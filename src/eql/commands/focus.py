"""Focus command printing the sub-query at a key path."""

from __future__ import annotations

from dataclasses import dataclass

import click
import typer

from eql import config as config_module
from eql.cli_common import load_query_value, parse_key_path
from eql.output_format import (
    DEFAULT_OUTPUT_THEME,
    build_console,
    prepare_value_output,
    print_prepared_output,
    should_use_color,
)
from eql.query_language import QueryParseError, focus_subquery


@dataclass
class FocusArgs:
    """Arguments for the focus command."""

    query: str
    keys: list[str]
    config: str
    color_flag: bool | None
    out_theme: str


def run_focus(args: FocusArgs) -> None:
    """Run the focus command.

    A path that does not resolve prints "Not found" and exits with status 1.
    """
    color_enabled = should_use_color(args.color_flag)
    console = build_console(color_enabled)
    query = load_query_value(args.query)
    key_path = parse_key_path(args.keys)
    try:
        subquery = focus_subquery(query, key_path)
    except QueryParseError as exc:
        raise click.UsageError(str(exc)) from exc

    print_prepared_output(console, prepare_value_output(subquery, color_enabled, args.out_theme))
    if subquery is None:
        raise typer.Exit(code=1)


def register(app: typer.Typer) -> None:
    """Register the focus command."""

    @app.command("focus")
    def focus_command(
        query: str = typer.Argument(
            ..., metavar="QUERY", help="Query notation, '-' for stdin, or @FILE"
        ),
        keys: list[str] = typer.Argument(  # noqa: B008
            ..., metavar="KEY", help="Join keys (and union keys) to descend through"
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
        """Print the sub-query reachable along a key path."""
        args = FocusArgs(
            query=query,
            keys=keys,
            config=config,
            color_flag=color_flag,
            out_theme=out_theme,
        )
        config_module.log_applied_config_defaults("focus")
        config_module.log_command_arguments(args, "focus")
        run_focus(args)
