"""Coordinator for many supervised commands.

This module provides the SupervisorManager class, which runs one
Supervisor per selected command using anyio for structured concurrency
and funnels every supervisor's events into a single StatusDisplay.
"""

from __future__ import annotations

import math
import signal
from typing import TYPE_CHECKING, final

import anyio

from mrm.exceptions import SupervisorNotFoundError
from mrm.utils import create_logger

from ._filter import filter_commands, merge_patterns
from ._models import Closed, CommandSpec, OutputReceived, StateChanged
from ._output import StatusDisplay
from ._supervisor import RESTART_DELAY, Supervisor

if TYPE_CHECKING:
    from collections.abc import Sequence

    from anyio.streams.memory import (
        MemoryObjectReceiveStream,
        MemoryObjectSendStream,
    )

    from mrm.config import Configuration

    from ._models import State, SupervisorEvent
    from ._protocol import ChangeWatcher, ProcessSpawner, ProcessTreeTerminator


@final
class SupervisorManager:
    """Runs a set of supervised commands and renders their status.

    Each supervisor gets its own event channel, consumed by its own task,
    so events from one command arrive in order while events from different
    commands interleave freely. Every event is rendered the same way: the
    status line is erased, the event is written, and the status line is
    written again.

    Crash restarts are decided here: a Closed event carrying a restart
    callable is announced and the callable invoked; one without (a failed
    install step) leaves the command closed.
    """

    __slots__ = (
        "_display",
        "_handle_signals",
        "_include",
        "_logger",
        "_shutdown_event",
        "_supervisors",
    )

    def __init__(  # noqa: PLR0913
        self,
        commands: Sequence[CommandSpec],
        include: Sequence[str] = (),
        *,
        display: StatusDisplay | None = None,
        spawner: ProcessSpawner | None = None,
        terminator: ProcessTreeTerminator | None = None,
        watcher: ChangeWatcher | None = None,
        restart_delay: float = RESTART_DELAY,
        handle_signals: bool = True,
    ) -> None:
        """Initialize the manager.

        Args:
            commands: All configured commands.
            include: Glob patterns matched against command names and tags.
                When empty, every command is supervised.
            display: Terminal renderer. Uses a StatusDisplay on stdout if None.
            spawner: Process spawner shared by all supervisors.
            terminator: Process-tree terminator shared by all supervisors.
            watcher: Change watcher shared by all supervisors.
            restart_delay: Seconds between an unexpected exit and the respawn.
            handle_signals: Whether run() stops on SIGINT and SIGTERM.
        """
        self._display = display or StatusDisplay()
        self._handle_signals = handle_signals
        self._include = tuple(include)
        self._shutdown_event: anyio.Event | None = None
        self._logger = create_logger(component="manager")
        self._supervisors: dict[str, Supervisor] = {}

        for spec in filter_commands(commands, self._include):
            self._supervisors[spec.name] = Supervisor(
                spec,
                spawner=spawner,
                terminator=terminator,
                watcher=watcher,
                restart_delay=restart_delay,
            )

    @classmethod
    def from_configuration(
        cls,
        config: Configuration,
        include: Sequence[str] = (),
        **kwargs: object,
    ) -> SupervisorManager:
        """Create a manager from a validated configuration.

        Args:
            config: The loaded configuration.
            include: Extra include patterns, unioned with the configuration's.
            **kwargs: Passed through to the constructor.

        Returns:
            The manager.
        """
        commands = [CommandSpec.from_configuration(item) for item in config.commands]
        patterns = merge_patterns(config.include, include)
        return cls(commands, patterns, **kwargs)  # pyright: ignore[reportArgumentType]

    @property
    def supervisors(self) -> tuple[Supervisor, ...]:
        """Return the supervisors in configured order."""
        return tuple(self._supervisors.values())

    @property
    def include(self) -> tuple[str, ...]:
        """Return the include patterns in effect."""
        return self._include

    def get_supervisor(self, name: str) -> Supervisor:
        """Get a supervisor by command name.

        Args:
            name: The command name.

        Returns:
            The Supervisor for the named command.

        Raises:
            SupervisorNotFoundError: If no supervised command has that name.
        """
        supervisor = self._supervisors.get(name)
        if supervisor is None:
            msg = f"Command '{name}' is not supervised"
            raise SupervisorNotFoundError(msg, supervisor_name=name)
        return supervisor

    def statuses(self) -> list[tuple[str, State]]:
        """Return (name, state) for every supervised command."""
        return [(name, sup.state) for name, sup in self._supervisors.items()]

    async def run(self) -> None:
        """Run every supervisor until shutdown.

        Blocks until shutdown() is called or, with signal handling enabled,
        SIGINT or SIGTERM arrives. On the way out every live process tree is
        terminated; watchers stop with their cancelled tasks.
        """
        if not self._supervisors:
            self._logger.warning("nothing_to_supervise", include=list(self._include))
            return

        self._shutdown_event = anyio.Event()
        self._logger.info("starting", commands=list(self._supervisors))

        try:
            async with anyio.create_task_group() as tg:
                if self._handle_signals:
                    tg.start_soon(self._watch_signals)

                for supervisor in self._supervisors.values():
                    send: MemoryObjectSendStream[SupervisorEvent]
                    receive: MemoryObjectReceiveStream[SupervisorEvent]
                    send, receive = anyio.create_memory_object_stream(math.inf)
                    tg.start_soon(self._consume, receive)
                    supervisor.start(tg, send)

                _ = await self._shutdown_event.wait()
                tg.cancel_scope.cancel()
        finally:
            with anyio.CancelScope(shield=True):
                for supervisor in self._supervisors.values():
                    await supervisor.stop()
            self._display.clear_status()
            self._logger.info("stopped")

    async def shutdown(self) -> None:
        """Trigger shutdown of all supervisors.

        Sets the shutdown event, which causes run() to stop every command
        and return.
        """
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    async def _watch_signals(self) -> None:
        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
            async for signum in signals:
                self._logger.info("signal_received", signal=signal.Signals(signum).name)
                await self.shutdown()
                break

    async def _consume(
        self,
        receive: MemoryObjectReceiveStream[SupervisorEvent],
    ) -> None:
        async with receive:
            async for event in receive:
                self.handle_event(event)

    def handle_event(self, event: SupervisorEvent) -> None:
        """Render one supervisor event and act on unexpected exits.

        Args:
            event: The event to handle.
        """
        self._display.clear_status()

        match event:
            case StateChanged(name=name, state=state):
                self._display.write_state(name, state)
            case OutputReceived(name=name, stream=stream, data=data):
                self._display.write_output(name, stream, data)
            case Closed(name=name, exit_code=exit_code, restart=restart):
                self._logger.info(
                    "command_closed",
                    command=name,
                    exit_code=exit_code,
                    restarting=restart is not None,
                )
                self._display.write_closed(
                    name, exit_code, restarting=restart is not None
                )
                if restart is not None:
                    restart()

        self._display.write_status(self.statuses())
