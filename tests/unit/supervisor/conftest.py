"""Fake process capabilities for supervisor tests."""

import math
from collections import deque
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from dataclasses import dataclass

import anyio
import anyio.lowlevel
import pytest
from anyio.streams.memory import MemoryObjectReceiveStream

from mrm.supervisor import CommandSpec, SupervisorEvent, WatchSpec


@dataclass(frozen=True, slots=True)
class ProcessScript:
    """What a fake process writes and how it ends.

    A held process stays alive until it is terminated or killed.
    """

    stdout: tuple[str, ...] = ()
    stderr: tuple[str, ...] = ()
    exit_code: int = 0
    hold: bool = False


class FakeProcess:
    def __init__(self, name: str, pid: int, script: ProcessScript) -> None:
        self.name = name
        self.pid = pid
        self.returncode: int | None = None
        self.terminated = False
        self.killed = False
        self._script = script
        self._exited = anyio.Event()

        stdout_send, self.stdout = anyio.create_memory_object_stream[bytes](math.inf)
        stderr_send, self.stderr = anyio.create_memory_object_stream[bytes](math.inf)
        for chunk in script.stdout:
            stdout_send.send_nowait(chunk.encode())
        for chunk in script.stderr:
            stderr_send.send_nowait(chunk.encode())
        stdout_send.close()
        stderr_send.close()

    async def wait(self) -> int:
        if self._script.hold:
            _ = await self._exited.wait()
        else:
            await anyio.lowlevel.checkpoint()
            if self.returncode is None:
                self.returncode = self._script.exit_code
        assert self.returncode is not None
        return self.returncode

    def terminate(self) -> None:
        self.terminated = True
        self._exit(-15)

    def kill(self) -> None:
        self.killed = True
        self._exit(-9)

    def _exit(self, code: int) -> None:
        if self.returncode is None:
            self.returncode = code
        self._exited.set()


class FakeSpawner:
    """Spawns fake processes following per-command scripts.

    Commands without a remaining script get ``default``. Commands named in
    ``fail`` raise FileNotFoundError like a missing executable.
    """

    def __init__(
        self,
        scripts: Mapping[str, Sequence[ProcessScript]] | None = None,
        *,
        default: ProcessScript | None = None,
        fail: Sequence[str] = (),
    ) -> None:
        self._scripts = {name: deque(items) for name, items in (scripts or {}).items()}
        self._default = default or ProcessScript(hold=True)
        self._fail = set(fail)
        self.spawned: list[FakeProcess] = []
        self.max_live = 0

    async def spawn(self, spec: CommandSpec) -> FakeProcess:
        await anyio.lowlevel.checkpoint()
        if spec.name in self._fail:
            raise FileNotFoundError(2, "No such file or directory", spec.command)

        queue = self._scripts.get(spec.name)
        script = queue.popleft() if queue else self._default
        process = FakeProcess(spec.name, 1000 + len(self.spawned), script)
        self.spawned.append(process)
        self.max_live = max(self.max_live, len(self.live))
        return process

    @property
    def live(self) -> list[FakeProcess]:
        return [process for process in self.spawned if process.returncode is None]

    def names(self) -> list[str]:
        return [process.name for process in self.spawned]


class FakeTerminator:
    def __init__(self) -> None:
        self.terminated: list[FakeProcess] = []

    async def terminate(self, process: FakeProcess) -> None:
        self.terminated.append(process)
        process.terminate()
        _ = await process.wait()


class FakeWatcher:
    """Change watcher whose batches are pushed by the test."""

    def __init__(self) -> None:
        self._send, self._receive = anyio.create_memory_object_stream[set[str]](
            math.inf
        )
        self.specs: list[WatchSpec] = []

    def trigger(self, *paths: str) -> None:
        self._send.send_nowait(set(paths))

    async def watch(self, spec: WatchSpec) -> AsyncIterator[set[str]]:
        self.specs.append(spec)
        async for changes in self._receive:
            yield changes


async def collect_until(
    receive: MemoryObjectReceiveStream[SupervisorEvent],
    predicate: Callable[[list[SupervisorEvent]], bool],
    *,
    timeout: float = 2.0,
) -> list[SupervisorEvent]:
    """Receive events until the predicate holds for everything received."""
    events: list[SupervisorEvent] = []
    with anyio.fail_after(timeout):
        async for event in receive:
            events.append(event)
            if predicate(events):
                break
    return events


def drain(
    receive: MemoryObjectReceiveStream[SupervisorEvent],
) -> list[SupervisorEvent]:
    """Return every event already buffered in the channel."""
    events: list[SupervisorEvent] = []
    while True:
        try:
            events.append(receive.receive_nowait())
        except anyio.WouldBlock:
            return events


async def wait_until(condition: Callable[[], bool], *, timeout: float = 2.0) -> None:
    with anyio.fail_after(timeout):
        while not condition():
            await anyio.sleep(0.01)


@pytest.fixture
def terminator() -> FakeTerminator:
    return FakeTerminator()


@pytest.fixture
def watcher() -> FakeWatcher:
    return FakeWatcher()
