from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from rich.console import Console
from rich.logging import RichHandler

_PACKAGE_LOGGER = "filterchain"


@dataclass(frozen=True, slots=True)
class LoggingState:
    level: int
    handlers: list[logging.Handler]
    propagate: bool


def _level_for(verbosity: int, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(*, verbosity: int, quiet: bool = False) -> LoggingState:
    """Route package logs to stderr; returns the state to restore afterwards."""
    logger = logging.getLogger(_PACKAGE_LOGGER)
    previous = LoggingState(
        level=logger.level, handlers=list(logger.handlers), propagate=logger.propagate
    )
    handler = RichHandler(
        console=Console(file=sys.stderr, force_terminal=False),
        show_path=False,
        rich_tracebacks=False,
    )
    logger.handlers = [handler]
    logger.setLevel(_level_for(verbosity, quiet))
    logger.propagate = False
    return previous


def restore_logging(state: LoggingState) -> None:
    logger = logging.getLogger(_PACKAGE_LOGGER)
    logger.handlers = state.handlers
    logger.setLevel(state.level)
    logger.propagate = state.propagate
