"""Per-command supervision.

This module provides the Supervisor class, which owns one external
process: it spawns the command, classifies its output into lifecycle
states, reports unexpected exits, and reloads the command when watched
files change. Install steps run first through an InstallChain.
"""

from __future__ import annotations

from collections import deque
from contextlib import suppress
from typing import TYPE_CHECKING, final

import anyio
from anyio.streams.text import TextReceiveStream

from mrm.exceptions import AlreadyStartedError
from mrm.utils import create_logger

from ._classifier import classify_chunk
from ._models import (
    Closed,
    OutputReceived,
    RestartReason,
    State,
    StateChanged,
)
from ._process import AnyioProcessSpawner, PsutilTreeTerminator
from ._watcher import WatchfilesChangeWatcher, format_changes

if TYPE_CHECKING:
    from collections.abc import Sequence

    import anyio.abc
    from anyio.streams.memory import MemoryObjectSendStream
    from structlog.typing import FilteringBoundLogger

    from ._models import CommandSpec, StreamName, SupervisorEvent
    from ._protocol import (
        ChangeWatcher,
        ProcessHandle,
        ProcessSpawner,
        ProcessTreeTerminator,
    )

RESTART_DELAY = 1.0
"""Seconds between an unexpected exit and the respawn."""

SPAWN_FAILURE_EXIT_CODE = 127
"""Exit code reported when a command cannot be started at all."""


@final
class _Run:
    """One spawned process and the reason its run ended."""

    __slots__ = ("process", "reason")

    def __init__(self, process: ProcessHandle) -> None:
        self.process = process
        self.reason = RestartReason.CRASH


@final
class Supervisor:
    """Supervises one external command.

    The supervisor reports everything that happens to its command as
    events on the channel passed to start(): state changes, output chunks,
    and unexpected exits. It never restarts a crashed command by itself;
    the Closed event carries a restart callable for the receiver to use.

    Attributes:
        spec: The command being supervised.
        install_step: Whether this supervisor runs an install step.
        state: The current lifecycle state.
        last_exit_code: Exit code of the most recent process, if any.
    """

    __slots__ = (
        "_events",
        "_finished",
        "_install_chain",
        "_lock",
        "_logger",
        "_restart_delay",
        "_run",
        "_spawner",
        "_started",
        "_task_group",
        "_terminator",
        "_watcher",
        "_watching",
        "install_step",
        "last_exit_code",
        "spec",
        "state",
    )

    def __init__(  # noqa: PLR0913
        self,
        spec: CommandSpec,
        *,
        spawner: ProcessSpawner | None = None,
        terminator: ProcessTreeTerminator | None = None,
        watcher: ChangeWatcher | None = None,
        install_step: bool = False,
        restart_delay: float = RESTART_DELAY,
    ) -> None:
        """Initialize the supervisor.

        Args:
            spec: The command to supervise.
            spawner: Starts processes. Uses AnyioProcessSpawner if None.
            terminator: Kills process trees. Uses PsutilTreeTerminator if None.
            watcher: Reports file changes. Uses WatchfilesChangeWatcher if None.
            install_step: Whether this supervisor runs an install step.
            restart_delay: Seconds to wait before a requested restart.
        """
        self.spec = spec
        self.install_step = install_step
        self.state = State.INSTALLING if spec.install else State.INITIALIZING
        self.last_exit_code: int | None = None
        self._spawner: ProcessSpawner = spawner or AnyioProcessSpawner()
        self._terminator: ProcessTreeTerminator = terminator or PsutilTreeTerminator()
        self._watcher: ChangeWatcher = watcher or WatchfilesChangeWatcher()
        self._restart_delay = restart_delay
        self._install_chain = InstallChain(self, spec.install) if spec.install else None
        self._run: _Run | None = None
        self._started = False
        self._watching = False
        self._task_group: anyio.abc.TaskGroup | None = None
        self._events: MemoryObjectSendStream[SupervisorEvent] | None = None
        self._finished: anyio.Event | None = None
        self._lock = anyio.Lock()
        self._logger: FilteringBoundLogger = create_logger(
            component="supervisor", command=spec.name
        )

    @property
    def name(self) -> str:
        """Return the display name of the supervised command."""
        return self.spec.name

    @property
    def pid(self) -> int | None:
        """Return the process ID of the live process, None otherwise."""
        return self._run.process.pid if self._run is not None else None

    def is_running(self) -> bool:
        """Check if a process is currently live."""
        return self._run is not None

    def start(
        self,
        task_group: anyio.abc.TaskGroup,
        events: MemoryObjectSendStream[SupervisorEvent],
    ) -> None:
        """Start supervising.

        Emits the initial state, then runs the install steps (if any) or
        spawns the command. All work happens in tasks on the task group.

        Args:
            task_group: Task group that owns the supervisor's tasks.
            events: Channel receiving this supervisor's events. It must
                have an unbounded buffer.

        Raises:
            AlreadyStartedError: If the supervisor was already started.
        """
        if self._started:
            msg = f"[{self.name}] has already started"
            raise AlreadyStartedError(msg, supervisor_name=self.name)

        self._started = True
        self._task_group = task_group
        self._events = events
        if self.install_step:
            self._finished = anyio.Event()

        self._emit(StateChanged(self.name, self.state))
        if self._install_chain is not None:
            task_group.start_soon(self._install_chain.run, task_group, events)
        else:
            task_group.start_soon(self._spawn)

    async def wait_finished(self) -> int:
        """Wait for an install step's process to exit.

        Returns:
            The exit code of the install step.
        """
        if self._finished is None:
            msg = f"[{self.name}] is not a started install step"
            raise RuntimeError(msg)
        _ = await self._finished.wait()
        return self.last_exit_code if self.last_exit_code is not None else 0

    def restart(self) -> None:
        """Schedule a respawn of the command after the restart delay."""
        if self._task_group is None:
            msg = f"[{self.name}] cannot restart before it has started"
            raise RuntimeError(msg)
        self._logger.info("restart_scheduled", delay=self._restart_delay)
        self._task_group.start_soon(self._restart_after_delay)

    async def stop(self) -> None:
        """Terminate the live process tree, including a running install step."""
        if self._install_chain is not None and self._install_chain.active is not None:
            await self._install_chain.active.stop()

        run = self._run
        if run is None:
            return
        run.reason = RestartReason.SHUTDOWN
        self._logger.info("stopping", pid=run.process.pid)
        await self._terminator.terminate(run.process)
        if self._run is run:
            self._run = None

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _emit(self, event: SupervisorEvent) -> None:
        if self._events is None:
            return
        try:
            self._events.send_nowait(event)
        except (anyio.BrokenResourceError, anyio.ClosedResourceError):
            # The manager stops listening during shutdown
            self._logger.debug("event_dropped", event=type(event).__name__)

    def _set_state(self, state: State) -> None:
        self.state = state
        self._logger.debug("state_changed", state=state.value)
        self._emit(StateChanged(self.name, state))

    # -------------------------------------------------------------------------
    # Process lifecycle
    # -------------------------------------------------------------------------

    async def _spawn(self) -> None:
        """Spawn the command unless a process is already live."""
        async with self._lock:
            if self._run is not None:
                return

            try:
                process = await self._spawner.spawn(self.spec)
            except OSError as e:
                self._logger.error("spawn_failed", error=str(e))
                self._emit(
                    OutputReceived(self.name, "stderr", f"failed to start: {e}\n")
                )
                self._handle_exit(SPAWN_FAILURE_EXIT_CODE, RestartReason.CRASH)
                return

            run = _Run(process)
            self._run = run
            self._logger.info(
                "spawned", pid=process.pid, command=list(self.spec.command_line)
            )

        assert self._task_group is not None  # noqa: S101
        self._task_group.start_soon(self._supervise, run)

        watch_pending = self.spec.watch is not None and not self._watching
        if watch_pending and not self.install_step:
            self._watching = True
            self._task_group.start_soon(self._watch)

    async def _supervise(self, run: _Run) -> None:
        """Stream a run's output and handle its exit."""
        process = run.process
        async with anyio.create_task_group() as tg:
            if process.stdout is not None:
                tg.start_soon(self._stream_output, process.stdout, "stdout")
            if process.stderr is not None:
                tg.start_soon(self._stream_output, process.stderr, "stderr")
            exit_code = await process.wait()

        if self._run is run:
            self._run = None
        self._handle_exit(exit_code, run.reason)

    async def _stream_output(
        self,
        stream: anyio.abc.ByteReceiveStream,
        stream_name: StreamName,
    ) -> None:
        """Forward output chunks and classify them.

        Args:
            stream: The byte stream to read from.
            stream_name: Name of the stream ("stdout" or "stderr").
        """
        text_stream = TextReceiveStream(stream, errors="replace")
        with suppress(anyio.ClosedResourceError, anyio.BrokenResourceError):
            async for chunk in text_stream:
                self._emit(OutputReceived(self.name, stream_name, chunk))
                for state in classify_chunk(self.spec.patterns, chunk):
                    self._set_state(state)

    def _handle_exit(self, exit_code: int, reason: RestartReason) -> None:
        """React to the end of a run.

        Args:
            exit_code: The process exit code.
            reason: Why the run ended.
        """
        self._logger.info("exited", exit_code=exit_code, reason=reason.value)
        if reason is not RestartReason.CRASH:
            return

        self.last_exit_code = exit_code
        if self.install_step:
            self._set_state(State.COMPLETE if exit_code == 0 else State.CLOSED)
            if self._finished is not None:
                self._finished.set()
            return

        self._set_state(State.CLOSED)
        self._emit(Closed(self.name, exit_code, self.restart))

    async def _restart_after_delay(self) -> None:
        await anyio.sleep(self._restart_delay)
        if self._run is not None:
            # A reload already started a new process
            return
        self._set_state(State.INITIALIZING)
        await self._spawn()

    # -------------------------------------------------------------------------
    # Install chain hooks
    # -------------------------------------------------------------------------

    def _create_install_step(self, spec: CommandSpec) -> Supervisor:
        return Supervisor(
            spec,
            spawner=self._spawner,
            terminator=self._terminator,
            watcher=self._watcher,
            install_step=True,
            restart_delay=self._restart_delay,
        )

    async def _finish_install(self) -> None:
        self._logger.info("install_complete")
        self._set_state(State.INITIALIZING)
        await self._spawn()

    def _abort_install(self, exit_code: int) -> None:
        self._logger.error("install_failed", exit_code=exit_code)
        self.last_exit_code = exit_code
        self._set_state(State.CLOSED)
        self._emit(Closed(self.name, exit_code, None))

    # -------------------------------------------------------------------------
    # Autoreload
    # -------------------------------------------------------------------------

    async def _watch(self) -> None:
        """Reload the command whenever watched files change."""
        spec = self.spec.watch
        assert spec is not None  # noqa: S101
        self._logger.info("watching", paths=[str(path) for path in spec.paths])
        try:
            async for changes in self._watcher.watch(spec):
                await self._reload(changes)
        except OSError as e:
            self._logger.error("watch_failed", error=str(e))
            self._emit(OutputReceived(self.name, "stderr", f"watch failed: {e}\n"))

    async def _reload(self, changes: set[str]) -> None:
        """Kill the whole process tree and respawn immediately.

        Args:
            changes: The paths that changed.
        """
        self._logger.info("reload_triggered", changes=sorted(changes))
        self._emit(
            OutputReceived(
                self.name,
                "stdout",
                f"change detected in {format_changes(changes)}, restarting...\n",
            )
        )

        run = self._run
        if run is not None:
            run.reason = RestartReason.WATCH_TRIGGERED
            await self._terminator.terminate(run.process)
            if self._run is run:
                self._run = None

        self._set_state(State.INITIALIZING)
        await self._spawn()


@final
class InstallChain:
    """Runs a supervisor's install steps one at a time.

    Each step is wrapped in its own install-step Supervisor sharing the
    parent's event channel. When every step has exited with code 0 the
    parent spawns its command; the first step to fail aborts the chain and
    the parent reports a Closed event without a restart callable.

    Attributes:
        active: The install step currently running, if any.
    """

    __slots__ = ("_logger", "_parent", "_queue", "active")

    def __init__(self, parent: Supervisor, steps: Sequence[CommandSpec]) -> None:
        """Initialize the chain.

        Args:
            parent: The supervisor the steps belong to.
            steps: Install steps in the order they run.
        """
        self._parent = parent
        self._queue: deque[CommandSpec] = deque(steps)
        self.active: Supervisor | None = None
        self._logger = create_logger(component="install", command=parent.name)

    def __len__(self) -> int:
        """Return the number of steps still queued."""
        return len(self._queue)

    async def run(
        self,
        task_group: anyio.abc.TaskGroup,
        events: MemoryObjectSendStream[SupervisorEvent],
    ) -> None:
        """Run the queued steps, then start the parent.

        Args:
            task_group: Task group that owns the steps' tasks.
            events: The parent's event channel.
        """
        while self._queue:
            spec = self._queue.popleft()
            step = self._parent._create_install_step(spec)  # noqa: SLF001
            self.active = step
            self._logger.info("step_started", step=spec.name)
            step.start(task_group, events)
            exit_code = await step.wait_finished()
            self.active = None

            if exit_code != 0:
                self._logger.info("step_failed", step=spec.name, exit_code=exit_code)
                self._queue.clear()
                self._parent._abort_install(exit_code)  # noqa: SLF001
                return

        await self._parent._finish_install()  # noqa: SLF001
