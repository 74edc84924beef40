"""Configuration file discovery."""

from pathlib import Path

DEFAULT_CONFIG_NAMES: tuple[str, ...] = ("mrm.yaml", "mrm.yml", "mrm.toml")
"""Configuration file names searched for, in order of preference."""


def find_config_file(directory: Path | None = None) -> Path | None:
    """Find the configuration file in a directory.

    Args:
        directory: Directory to search. Defaults to the current directory.

    Returns:
        Path to the first existing default config file, or None.
    """
    base = directory if directory is not None else Path.cwd()
    for name in DEFAULT_CONFIG_NAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None
