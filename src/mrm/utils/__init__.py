"""Shared utilities for mrm."""

from ._ignore import (
    DEFAULT_IGNORE_PATTERNS,
    create_pathspec,
    matches_any,
)
from ._logging import create_logger
from ._paths import get_mrm_dir, get_mrm_log_dir, get_mrm_log_file

__all__ = [
    "DEFAULT_IGNORE_PATTERNS",
    "create_logger",
    "create_pathspec",
    "get_mrm_dir",
    "get_mrm_log_dir",
    "get_mrm_log_file",
    "matches_any",
]
