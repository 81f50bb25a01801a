#!/usr/bin/env python
"""CLI interface for eql - query transaction AST tooling."""

from __future__ import annotations

import sys

import typer

from eql import config, logging_config
from eql.commands import focus, merge, normalize, parse


app = typer.Typer(
    help="Parse, normalize and focus query transactions.",
    no_args_is_help=True,
)


DEFAULT_LOGGING: dict[str, bool] = {"verbose": False, "debug": False}


@app.callback()
def main_callback(
    verbose: bool | None = typer.Option(
        None,
        "--verbose",
        "-v",
        help="Enable verbose logging output",
    ),
    debug: bool | None = typer.Option(
        None,
        "--debug",
        help="Enable debug logging of parser internals",
    ),
) -> None:
    """Global CLI options."""
    resolved_verbose = DEFAULT_LOGGING["verbose"] if verbose is None else verbose
    resolved_debug = DEFAULT_LOGGING["debug"] if debug is None else debug
    if verbose is None and debug is None and not (resolved_verbose or resolved_debug):
        return
    logging_config.configure_logging(resolved_verbose, resolved_debug)


parse.register(app)
normalize.register(app)
focus.register(app)
merge.register(app)


def main() -> None:
    """Main CLI entry point."""
    loaded_config = config.load_cli_config(sys.argv)
    DEFAULT_LOGGING["verbose"] = loaded_config.global_defaults.get("verbose", False)
    DEFAULT_LOGGING["debug"] = loaded_config.global_defaults.get("debug", False)
    config.CONFIG_DEFAULTS.clear()
    config.CONFIG_DEFAULTS.update(loaded_config.defaults)

    command = typer.main.get_command(app)
    defaults = loaded_config.defaults
    default_map = config.build_default_map(defaults) if defaults else None
    command.main(
        args=sys.argv[1:],
        prog_name="eql",
        standalone_mode=True,
        default_map=default_map,
    )


if __name__ == "__main__":
    main()
