"""Configuration file handling for the eql CLI.

A `.eql-cli.json` file in the working directory (or the file named by
`--config`) holds default option values keyed by their long option names:

    {"--out": "json", "--no-color": true, "--verbose": true}

Command options become Click `default_map` entries; `--verbose` and `--debug`
become defaults of the global callback.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from pathlib import Path

import typer

from eql.output_format import OutputFormat


DEFAULT_CONFIG_NAME = ".eql-cli.json"

COMMAND_NAMES = ("parse", "normalize", "focus", "merge")

CONFIG_DEFAULTS: dict[str, object] = {}


logger = logging.getLogger("eql")


@dataclass(frozen=True)
class ConfigOption:
    """One option that may be defaulted from the config file."""

    dest: str
    value_type: type
    is_global: bool = False
    commands: tuple[str, ...] = COMMAND_NAMES
    choices: frozenset[str] | None = None

    def validate(self, value: object) -> object | None:
        """Return the normalized value, or None if it is not acceptable."""
        if self.value_type is bool:
            return value if isinstance(value, bool) else None
        if not isinstance(value, str) or not value.strip():
            return None
        text = value.strip()
        if self.choices is not None and text.lower() not in self.choices:
            return None
        return text


CONFIG_OPTIONS: dict[str, ConfigOption] = {
    "--verbose": ConfigOption("verbose", bool, is_global=True),
    "--debug": ConfigOption("debug", bool, is_global=True),
    "--out": ConfigOption(
        "out",
        str,
        commands=("parse",),
        choices=frozenset(fmt.value for fmt in OutputFormat),
    ),
    "--out-theme": ConfigOption("out_theme", str),
}

COLOR_OPTION_NAME = "--color/--no-color"
COLOR_DEST = "color_flag"


@dataclass
class LoadedCliConfig:
    """Defaults read from the config file, split by where they apply."""

    defaults: dict[str, object]
    global_defaults: dict[str, bool]


def read_config_file(path: Path) -> dict[str, object] | None:
    """Read a JSON config object.

    Returns:
        The parsed object, an empty dict when the file does not exist, or None
        when it exists but is not a readable JSON object
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def resolve_color_flag(config: dict[str, object]) -> tuple[bool | None, bool]:
    """Combine `--color` and `--no-color` entries into one color flag.

    Returns:
        Tuple of (color flag or None when unset, valid flag)
    """
    color = config.get("--color", False)
    no_color = config.get("--no-color", False)
    if not isinstance(color, bool) or not isinstance(no_color, bool):
        return (None, False)
    if color and no_color:
        return (None, False)
    if color:
        return (True, True)
    if no_color:
        return (False, True)
    return (None, True)


def build_config_defaults(config: dict[str, object]) -> LoadedCliConfig | None:
    """Validate config entries and map them to option destinations.

    Returns None if any entry is unknown or has an invalid value.
    """
    color_flag, valid = resolve_color_flag(config)
    if not valid:
        return None

    loaded = LoadedCliConfig(defaults={}, global_defaults={})
    if color_flag is not None:
        loaded.defaults[COLOR_DEST] = color_flag

    for name, value in config.items():
        if name in ("--color", "--no-color"):
            continue
        option = CONFIG_OPTIONS.get(name)
        if option is None:
            return None
        validated = option.validate(value)
        if validated is None:
            return None
        if option.is_global:
            loaded.global_defaults[option.dest] = bool(validated)
        else:
            loaded.defaults[option.dest] = validated
    return loaded


def find_config_argument(argv: list[str]) -> str:
    """Return the --config value from raw argv, ahead of Click parsing."""
    args = argv[1:]
    for index, arg in enumerate(args):
        if arg.startswith("--config="):
            return arg.partition("=")[2]
        if arg == "--config" and index + 1 < len(args):
            return args[index + 1]
    return DEFAULT_CONFIG_NAME


def load_cli_config(argv: list[str]) -> LoadedCliConfig:
    """Load config defaults for this invocation.

    Raises:
        typer.BadParameter: If the config file is malformed
    """
    config_path = Path(find_config_argument(argv))
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_path

    config = read_config_file(config_path)
    loaded = build_config_defaults(config) if config is not None else None
    if loaded is None:
        raise typer.BadParameter("Malformed config")
    return loaded


def build_default_map(defaults: dict[str, object]) -> dict[str, dict[str, object]]:
    """Build the Click default_map, giving each command only its own options."""
    allowed = {option.dest: option.commands for option in CONFIG_OPTIONS.values()}
    return {
        command: {
            dest: value
            for dest, value in defaults.items()
            if command in allowed.get(dest, COMMAND_NAMES)
        }
        for command in COMMAND_NAMES
    }


def _option_name(dest: str) -> str:
    if dest == COLOR_DEST:
        return COLOR_OPTION_NAME
    for name, option in CONFIG_OPTIONS.items():
        if option.dest == dest:
            return name
    return dest


def log_applied_config_defaults(command_name: str) -> None:
    """Log the config-file defaults in effect for a command."""
    if not logger.isEnabledFor(logging.INFO) or not CONFIG_DEFAULTS:
        return
    entries = sorted(f"{_option_name(dest)}={value!r}" for dest, value in CONFIG_DEFAULTS.items())
    logger.info("Config defaults applied (%s): %s", command_name, ", ".join(entries))


def log_command_arguments(args: object, command_name: str) -> None:
    """Log the final argument values of a command's Args dataclass."""
    if not logger.isEnabledFor(logging.INFO) or not dataclasses.is_dataclass(args):
        return
    entries = [
        f"{field.name}={getattr(args, field.name)!r}"
        for field in sorted(dataclasses.fields(args), key=lambda item: item.name)
    ]
    logger.info("Command arguments (%s): %s", command_name, ", ".join(entries))
