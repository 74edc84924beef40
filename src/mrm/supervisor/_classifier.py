"""Output classification.

Output is classified one chunk at a time. A chunk is split into lines on
``\\r`` and ``\\n`` boundaries within that chunk only, so a line that
arrives split across two reads is tested as two separate fragments.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._models import OutputPatterns, State

_LINE_RE = re.compile(r"[^\r\n]+")


def split_lines(data: str) -> list[str]:
    """Split a chunk of output into its non-empty lines."""
    return _LINE_RE.findall(data)


def classify_line(patterns: OutputPatterns, line: str) -> State | None:
    """Classify one line of output.

    Pattern lists are tested in priority order ready, building, failed.
    The first list containing a matching pattern decides the state and the
    remaining lists are not tested.

    Args:
        patterns: The command's compiled patterns.
        line: A single line of output.

    Returns:
        The state the line indicates, or None when nothing matches.
    """
    for state, candidates in patterns.by_priority():
        if any(pattern.search(line) for pattern in candidates):
            return state
    return None


def classify_chunk(patterns: OutputPatterns, data: str) -> list[State]:
    """Classify every line of a chunk.

    Returns:
        The state transitions the chunk indicates, in line order.
    """
    states: list[State] = []
    for line in split_lines(data):
        state = classify_line(patterns, line)
        if state is not None:
            states.append(state)
    return states
