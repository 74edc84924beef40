"""Configuration loading and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from mrm.exceptions import ConfigLoadError, ConfigValidationError
from mrm.utils import create_logger

from ._discovery import DEFAULT_CONFIG_NAMES, find_config_file
from ._loader import read_config_file
from ._models import Configuration

if TYPE_CHECKING:
    from pathlib import Path

    from pydantic_core import ErrorDetails


def _error_to_exception(
    error: ErrorDetails, source: str | None
) -> ConfigValidationError:
    """Convert a Pydantic error dict to a ConfigValidationError.

    Args:
        error: A single error dict from ValidationError.errors().
        source: Path of the file being validated, if any.

    Returns:
        The exception describing the first validation problem.
    """
    key = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "Validation error"))

    expected = "valid value"
    ctx = error.get("ctx")
    if ctx is not None:
        if "expected" in ctx:
            expected = str(ctx["expected"])
        elif "pattern" in ctx:
            expected = f"pattern: {ctx['pattern']}"

    location = f" in {source}" if source else ""
    return ConfigValidationError(
        f"Invalid configuration{location}: {key or '<root>'}: {message}",
        key=key,
        value=error.get("input"),
        expected=expected,
        source=source,
    )


def validate_configuration(
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    *,
    source: str | None = None,
) -> Configuration:
    """Validate a parsed configuration dictionary.

    Args:
        data: The parsed configuration.
        source: Where the data came from, used in error messages.

    Returns:
        The validated configuration.

    Raises:
        ConfigValidationError: If the data does not match the schema,
            including an unsupported ``version``.
    """
    try:
        return Configuration.model_validate(data)
    except ValidationError as e:
        raise _error_to_exception(e.errors()[0], source) from e


def load_config(
    config_path: Path | None = None,
    *,
    directory: Path | None = None,
) -> tuple[Configuration, Path]:
    """Locate, read and validate the configuration file.

    Args:
        config_path: Explicit path to the config file (``--config``). The
            file must exist.
        directory: Directory searched for a default config file when no
            explicit path is given. Defaults to the current directory.

    Returns:
        Tuple of (Configuration, path of the file it was loaded from).

    Raises:
        ConfigLoadError: If no file is found, or it cannot be read or parsed.
        ConfigValidationError: If the file content is invalid.
    """
    logger = create_logger(component="config")

    path = config_path if config_path is not None else find_config_file(directory)
    if path is None:
        names = ", ".join(DEFAULT_CONFIG_NAMES)
        msg = f"No config file found (looked for {names})"
        raise ConfigLoadError(msg)

    data = read_config_file(path)
    config = validate_configuration(data, source=str(path))
    logger.info(
        "config_loaded",
        path=str(path),
        commands=len(config.commands),
        include=list(config.include),
    )
    return config, path
