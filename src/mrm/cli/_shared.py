"""Shared CLI utilities.

This module provides the exit codes and error printing used by the CLI.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Never

from rich.markup import escape

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "ExitCode",
    "exit_with_error",
]


class ExitCode(IntEnum):
    """Exit codes for the mrm CLI."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NO_COMMANDS = 3


def exit_with_error(message: str, code: ExitCode, *, console: Console) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display. Rich markup is escaped.
        code: The exit code to use.
        console: Console the message is printed to.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    raise SystemExit(code)
