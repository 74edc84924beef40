"""Protocol definitions for the supervisor system.

This module defines the capabilities the supervisor core consumes, so the
default implementations can be swapped out in tests or embedding code:
- ProcessHandle: A running child process
- ProcessSpawner: Starts a command and returns its handle
- ProcessTreeTerminator: Kills a process and all of its descendants
- ChangeWatcher: Reports filesystem changes for a watch spec
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from anyio.abc import ByteReceiveStream

    from ._models import CommandSpec, WatchSpec


@runtime_checkable
class ProcessHandle(Protocol):
    """Protocol for a spawned child process.

    ``anyio.abc.Process`` satisfies this protocol.
    """

    @property
    def pid(self) -> int:
        """Return the process ID."""
        ...

    @property
    def returncode(self) -> int | None:
        """Return the exit code, or None while the process is running."""
        ...

    @property
    def stdout(self) -> ByteReceiveStream | None:
        """Return the stream of the process's standard output."""
        ...

    @property
    def stderr(self) -> ByteReceiveStream | None:
        """Return the stream of the process's standard error."""
        ...

    async def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""
        ...

    def terminate(self) -> None:
        """Ask the process to exit."""
        ...

    def kill(self) -> None:
        """Forcibly kill the process."""
        ...


@runtime_checkable
class ProcessSpawner(Protocol):
    """Protocol for starting command processes."""

    async def spawn(self, spec: CommandSpec) -> ProcessHandle:
        """Start the given command.

        Args:
            spec: The command to start.

        Returns:
            A handle to the running process with piped stdout and stderr.

        Raises:
            OSError: If the process cannot be started.
        """
        ...


@runtime_checkable
class ProcessTreeTerminator(Protocol):
    """Protocol for terminating a process together with its descendants."""

    async def terminate(self, process: ProcessHandle) -> None:
        """Terminate the process and every process descended from it.

        Returns once the root process has exited.

        Args:
            process: Root of the process tree.
        """
        ...


@runtime_checkable
class ChangeWatcher(Protocol):
    """Protocol for filesystem change notification."""

    def watch(self, spec: WatchSpec) -> AsyncIterator[set[str]]:
        """Yield the set of changed paths for each batch of changes.

        Only changes made after watching begins are reported. Iteration
        stops when the consuming task is cancelled.

        Args:
            spec: The paths and options to watch.
        """
        ...
