"""Merge command combining two queries."""

from __future__ import annotations

from dataclasses import dataclass

import click
import typer

from eql import config as config_module
from eql.cli_common import load_query_value
from eql.output_format import (
    DEFAULT_OUTPUT_THEME,
    build_console,
    prepare_value_output,
    print_prepared_output,
    should_use_color,
)
from eql.query_language import QueryMergeError, QueryParseError, merge_queries


@dataclass
class MergeArgs:
    """Arguments for the merge command."""

    left: str
    right: str
    config: str
    color_flag: bool | None
    out_theme: str


def run_merge(args: MergeArgs) -> None:
    """Run the merge command."""
    color_enabled = should_use_color(args.color_flag)
    console = build_console(color_enabled)
    left = load_query_value(args.left)
    right = load_query_value(args.right)
    try:
        merged = merge_queries(left, right)
    except (QueryParseError, QueryMergeError) as exc:
        raise click.UsageError(str(exc)) from exc
    print_prepared_output(console, prepare_value_output(merged, color_enabled, args.out_theme))


def register(app: typer.Typer) -> None:
    """Register the merge command."""

    @app.command("merge")
    def merge_command(
        left: str = typer.Argument(..., metavar="QUERY", help="Base query"),
        right: str = typer.Argument(..., metavar="QUERY", help="Query merged into the base"),
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
        """Merge two queries, combining joins on the same key."""
        args = MergeArgs(
            left=left,
            right=right,
            config=config,
            color_flag=color_flag,
            out_theme=out_theme,
        )
        config_module.log_applied_config_defaults("merge")
        config_module.log_command_arguments(args, "merge")
        run_merge(args)
