"""Logging configuration for the eql CLI."""

from __future__ import annotations

import logging
import sys


LOGGER_NAME = "eql"

_VERBOSE_FORMAT = "%(message)s"
_DEBUG_FORMAT = "%(levelname)s %(module)s: %(message)s"


def configure_logging(verbose: bool, debug: bool = False) -> None:
    """Configure the eql logger for CLI use.

    Args:
        verbose: Log config defaults and command arguments (INFO) to stderr
        debug: Also log parser and algebra internals (DEBUG); implies verbose
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False
    logger.handlers.clear()

    if not verbose and not debug:
        logger.setLevel(logging.WARNING)
        return

    level = logging.DEBUG if debug else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_DEBUG_FORMAT if debug else _VERBOSE_FORMAT))
    logger.setLevel(level)
    logger.addHandler(handler)
