"""Default process capabilities built on anyio and psutil.

This module provides the spawner used to start supervised commands and
the terminator used to kill a command together with every process it
started, so that reloads do not leave orphaned grandchildren behind.
"""

from __future__ import annotations

import os
import subprocess
from contextlib import suppress
from functools import partial
from typing import TYPE_CHECKING, final

import anyio
import anyio.to_thread
import psutil

from mrm.utils import create_logger

if TYPE_CHECKING:
    from ._models import CommandSpec
    from ._protocol import ProcessHandle

DEFAULT_TERMINATE_TIMEOUT = 5.0
"""Seconds to wait after SIGTERM before sending SIGKILL."""


@final
class AnyioProcessSpawner:
    """Spawns commands with ``anyio.open_process``.

    Each command runs in its own session so its process tree can be
    signalled as a unit. Stdout and stderr are piped; stdin is closed.
    """

    __slots__ = ()

    async def spawn(self, spec: CommandSpec) -> ProcessHandle:
        """Start the given command.

        Args:
            spec: The command to start.

        Returns:
            The running anyio process.

        Raises:
            OSError: If the executable cannot be started.
        """
        env: dict[str, str] | None = None
        if spec.env:
            env = {**os.environ, **spec.env}

        command: str | tuple[str, ...]
        if spec.shell:
            command = " ".join(spec.command_line)
        else:
            command = spec.command_line

        return await anyio.open_process(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=spec.cwd,
            env=env,
            start_new_session=os.name == "posix",
        )


def _list_descendants(pid: int) -> list[psutil.Process]:
    """Snapshot every live descendant of a process."""
    try:
        return psutil.Process(pid).children(recursive=True)
    except psutil.NoSuchProcess:
        return []


def _signal_all(processes: list[psutil.Process], *, force: bool) -> None:
    for proc in processes:
        with suppress(psutil.NoSuchProcess, psutil.AccessDenied):
            if force:
                proc.kill()
            else:
                proc.terminate()


@final
class PsutilTreeTerminator:
    """Terminates a process tree using psutil.

    Descendants are discovered before anything is signalled, so children
    re-parented when the root dies are still found. Everything receives
    SIGTERM first and SIGKILL if it is still alive after the timeout.

    The root process is reaped through its own handle rather than psutil
    so the event loop's child watcher still sees its exit status.
    """

    __slots__ = ("_logger", "_timeout")

    def __init__(self, timeout: float = DEFAULT_TERMINATE_TIMEOUT) -> None:
        """Initialize the terminator.

        Args:
            timeout: Seconds to wait for graceful exit before killing.
        """
        self._timeout = timeout
        self._logger = create_logger(component="terminator")

    async def terminate(self, process: ProcessHandle) -> None:
        """Terminate the process and all of its descendants.

        Args:
            process: Root of the process tree.
        """
        descendants = await anyio.to_thread.run_sync(_list_descendants, process.pid)
        self._logger.debug(
            "terminating_tree",
            pid=process.pid,
            descendants=[child.pid for child in descendants],
        )

        _signal_all(descendants, force=False)
        if process.returncode is None:
            with suppress(ProcessLookupError):
                process.terminate()

        with anyio.move_on_after(self._timeout):
            _ = await process.wait()

        if process.returncode is None:
            self._logger.warning("root_kill", pid=process.pid)
            with suppress(ProcessLookupError):
                process.kill()
            _ = await process.wait()

        if descendants:
            _, alive = await anyio.to_thread.run_sync(
                partial(psutil.wait_procs, descendants, timeout=self._timeout)
            )
            if alive:
                self._logger.warning(
                    "descendants_kill", pids=[child.pid for child in alive]
                )
                _signal_all(alive, force=True)
