"""Filesystem locations used by mrm."""

from os import getenv
from pathlib import Path


def get_mrm_dir() -> Path:
    """Get the path to the .mrm/ directory in the current working directory."""
    return Path.cwd() / ".mrm"


def get_mrm_log_dir() -> Path:
    """Get the path to the logs/ directory inside .mrm/."""
    return get_mrm_dir() / "logs"


def get_mrm_log_file() -> Path:
    """Get the path to the log file.

    ``MRM_LOG_FILE`` overrides the default of .mrm/logs/mrm.log.
    """
    override = getenv("MRM_LOG_FILE", "").strip()
    if override:
        return Path(override)
    return get_mrm_log_dir() / "mrm.log"
