import sys
from collections.abc import Callable, Mapping
from pathlib import Path

import anyio
import pytest
from anyio.streams.memory import MemoryObjectReceiveStream

from mrm.supervisor import (
    CommandSpec,
    OutputPatterns,
    OutputReceived,
    SupervisorEvent,
    WatchSpec,
)


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


def python_command(  # noqa: PLR0913
    name: str,
    script: str,
    *,
    ready: tuple[str, ...] = (),
    failed: tuple[str, ...] = (),
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    watch: WatchSpec | None = None,
) -> CommandSpec:
    """Build a command that runs a Python snippet with the test interpreter."""
    return CommandSpec(
        name=name,
        command=sys.executable,
        args=("-u", "-c", script),
        cwd=cwd,
        env=dict(env or {}),
        watch=watch,
        patterns=OutputPatterns.compile(ready=ready, failed=failed),
    )


async def receive_until(
    receive: MemoryObjectReceiveStream[SupervisorEvent],
    predicate: Callable[[SupervisorEvent], bool],
    *,
    timeout: float = 10.0,
) -> list[SupervisorEvent]:
    """Receive events up to and including the first matching one."""
    events: list[SupervisorEvent] = []
    with anyio.fail_after(timeout):
        async for event in receive:
            events.append(event)
            if predicate(event):
                break
    return events


def stdout_text(events: list[SupervisorEvent]) -> str:
    return "".join(
        event.data
        for event in events
        if isinstance(event, OutputReceived) and event.stream == "stdout"
    )
