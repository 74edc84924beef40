"""mrm exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class MrmError(Exception):
    """Base exception for mrm errors."""


class ConfigError(MrmError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


class SupervisorError(MrmError):
    """Base exception for supervisor errors.

    Attributes:
        supervisor_name: Name of the command the error concerns, if known.
    """

    def __init__(self, message: str, *, supervisor_name: str | None = None) -> None:
        """Initialize with error message and the command's name."""
        super().__init__(message)
        self.supervisor_name: str | None = supervisor_name


class AlreadyStartedError(SupervisorError):
    """Raised when a supervisor is started more than once."""


class SupervisorNotFoundError(SupervisorError, KeyError):
    """Raised when no supervised command has the requested name."""

    def __str__(self) -> str:
        # KeyError would wrap the message in quotes
        return str(self.args[0])
