"""Gitignore-style pattern matching using pathspec.

This module builds the ignore rules applied to watched paths: a default
set that excludes dependency and tooling trees, plus any extra patterns
from a command's watch options.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from pathspec import PathSpec


DEFAULT_IGNORE_PATTERNS: frozenset[str] = frozenset(
    {
        "*.pyc",
        "__pycache__/",
        ".git/",
        ".mrm/",
        "node_modules/",
        "bower_components/",
        ".venv/",
        "*.egg-info/",
    }
)
"""Default patterns to ignore when watching files.

These patterns are applied unless a watch disables its default ignores,
so changes inside dependency directories never trigger a restart.
"""


def collect_patterns(
    extra_patterns: Iterable[str] = (),
    *,
    include_defaults: bool = True,
) -> list[str]:
    """Collect ignore patterns.

    Args:
        extra_patterns: Additional patterns to include after the defaults.
        include_defaults: Whether to include DEFAULT_IGNORE_PATTERNS.

    Returns:
        List of all collected patterns, deduplicated while preserving order.
    """
    patterns: list[str] = []
    seen: set[str] = set()

    candidates = [*sorted(DEFAULT_IGNORE_PATTERNS)] if include_defaults else []
    candidates.extend(extra_patterns)
    for pattern in candidates:
        if pattern not in seen:
            seen.add(pattern)
            patterns.append(pattern)

    return patterns


def create_pathspec(
    extra_patterns: Iterable[str] = (),
    *,
    include_defaults: bool = True,
) -> PathSpec:
    """Create a PathSpec from collected ignore patterns.

    Args:
        extra_patterns: Additional patterns to include after the defaults.
        include_defaults: Whether to include DEFAULT_IGNORE_PATTERNS.

    Returns:
        A PathSpec instance configured with gitignore-style pattern matching.
    """
    from pathspec import PathSpec as PathSpecClass  # noqa: PLC0415

    patterns = collect_patterns(extra_patterns, include_defaults=include_defaults)
    return PathSpecClass.from_lines("gitwildmatch", patterns)


def matches_any(
    spec: PathSpec,
    path: str | PurePath,
    *,
    roots: Iterable[Path] = (),
) -> bool:
    """Check whether a path is matched by any ignore pattern.

    Absolute paths are matched relative to the first root that contains
    them; paths outside every root are matched as given.

    Args:
        spec: The PathSpec to match against.
        path: The path to check.
        roots: Directories the path may be relative to.

    Returns:
        True if the path is ignored.
    """
    candidate = PurePath(path)
    for root in roots:
        try:
            candidate = candidate.relative_to(root)
            break
        except ValueError:
            continue
    return spec.match_file(candidate.as_posix())
