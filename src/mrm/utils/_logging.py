"""Logging utilities for mrm.

This module provides standalone structlog loggers that write JSON lines
to the mrm log file. Each logger is self-contained and does not modify
global structlog configuration. Nothing is written to the terminal, which
belongs to the status display.
"""

from __future__ import annotations

import logging
from functools import cache
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, cast

import structlog

from ._paths import get_mrm_log_file

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks MRM_DEBUG first (sets DEBUG if present), then MRM_LOG_LEVEL.
    Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("MRM_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("MRM_LOG_LEVEL", "info").upper(), logging.INFO)


@cache
def _create_logger(log_file_path: str, *, log_level: int) -> FilteringBoundLogger:
    """Create a standalone structlog logger writing JSON lines to a file.

    Loggers are cached per file and level so the file is opened once.

    Args:
        log_file_path: Path to the log file (will be opened in append mode).
        log_level: Minimum level to emit.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    log_path = Path(log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.WriteLogger(log_path.open("a")),
            processors=[
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
        ),
    )


def create_logger(**context: object) -> FilteringBoundLogger:
    """Create a logger for mrm components.

    Writes to .mrm/logs/mrm.log in the working directory, or to the file
    named by MRM_LOG_FILE. The level is determined by MRM_DEBUG (forces
    DEBUG) and then MRM_LOG_LEVEL (default INFO).

    Args:
        **context: Key/value pairs bound to every entry, such as the
            component or command name.

    Returns:
        A FilteringBoundLogger instance.
    """
    logger = _create_logger(str(get_mrm_log_file()), log_level=_get_log_level())
    if context:
        return logger.bind(**context)
    return logger
