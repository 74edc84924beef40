# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML and YAML configuration file reading."""

from __future__ import annotations

import tomllib
from typing import TYPE_CHECKING, Any

import yaml

from mrm.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pathlib import Path


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e
    except UnicodeDecodeError as e:
        msg = f"Failed to parse TOML file: invalid UTF-8 at byte {e.start}"
        raise ConfigLoadError(msg, path=path) from e


def read_yaml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a YAML file.

    An empty document is read as an empty mapping.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed or is not a mapping.
    """
    try:
        with path.open("rb") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        msg = f"Failed to parse YAML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a mapping at the top of {path}, got {type(data).__name__}"
        raise ConfigLoadError(msg, path=path)
    return data


def read_config_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read a configuration file, choosing the parser from its suffix.

    Suffixes starting with ``.t`` (``.toml``, ``.tml``) are parsed as TOML;
    anything else is parsed as YAML.

    Args:
        path: Path to the configuration file.

    Returns:
        Parsed configuration as dictionary.

    Raises:
        ConfigLoadError: If the file cannot be read or parsed.
    """
    try:
        if path.suffix.lower().startswith(".t"):
            return read_toml_file(path)
        return read_yaml_file(path)
    except OSError as e:
        msg = f"Failed to read config file: {e}"
        raise ConfigLoadError(msg, path=path) from e
