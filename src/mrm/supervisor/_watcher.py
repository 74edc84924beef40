"""File watcher built on watchfiles.

Changes are filtered through gitignore-style patterns: by default the
dependency and tooling trees in DEFAULT_IGNORE_PATTERNS are excluded, and
each watch may add patterns of its own. watchfiles only reports changes
made after a watch starts, so files that already exist never produce
events on their own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

from mrm.utils import create_pathspec, matches_any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from watchfiles import Change

    from ._models import WatchSpec


def format_changes(changes: set[str], *, limit: int = 3) -> str:
    """Format a batch of changed paths for display.

    Args:
        changes: The changed paths.
        limit: Maximum number of paths to name before summarizing.

    Returns:
        A short human-readable description.
    """
    ordered = sorted(changes)
    shown = ", ".join(ordered[:limit])
    remaining = len(ordered) - limit
    if remaining > 0:
        return f"{shown} and {remaining} more"
    return shown


@final
class WatchfilesChangeWatcher:
    """Change watcher using ``watchfiles.awatch``."""

    __slots__ = ()

    async def watch(self, spec: WatchSpec) -> AsyncIterator[set[str]]:
        """Yield the set of changed paths for each batch of changes.

        Args:
            spec: The paths and options to watch.

        Raises:
            FileNotFoundError: If a watched path does not exist.
        """
        from watchfiles import awatch  # noqa: PLC0415

        pathspec = create_pathspec(spec.ignore, include_defaults=spec.default_ignore)
        roots = [path if path.is_dir() else path.parent for path in spec.paths]

        def should_watch(_change: Change, changed_path: str) -> bool:
            """Filter function for watchfiles.

            Args:
                _change: The type of change (unused).
                changed_path: The path that changed.

            Returns:
                True if the change should be reported.
            """
            return not matches_any(pathspec, changed_path, roots=roots)

        async for changes in awatch(
            *spec.paths,
            watch_filter=should_watch,
            recursive=spec.recursive,
            debounce=spec.debounce_ms,
        ):
            paths = {changed_path for _, changed_path in changes}
            if paths:
                yield paths
