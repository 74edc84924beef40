"""Include filtering of configured commands."""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ._models import CommandSpec


def merge_patterns(*sources: Iterable[str]) -> tuple[str, ...]:
    """Union include patterns from several sources, keeping first-seen order."""
    return tuple(dict.fromkeys(pattern for source in sources for pattern in source))


def matches_include(spec: CommandSpec, patterns: Iterable[str]) -> bool:
    """Check whether a command's name or any of its tags matches a pattern.

    Matching uses case-sensitive glob semantics.

    Args:
        spec: The command to check.
        patterns: Glob patterns.

    Returns:
        True if any pattern matches.
    """
    candidates = (spec.name, *spec.tags)
    return any(
        fnmatchcase(candidate, pattern)
        for pattern in patterns
        for candidate in candidates
    )


def filter_commands(
    specs: Iterable[CommandSpec],
    patterns: Sequence[str],
) -> list[CommandSpec]:
    """Keep the commands selected by the include patterns.

    Args:
        specs: All configured commands.
        patterns: Include patterns. When empty, every command is kept.

    Returns:
        The selected commands in their configured order.
    """
    if not patterns:
        return list(specs)
    return [spec for spec in specs if matches_include(spec, patterns)]
