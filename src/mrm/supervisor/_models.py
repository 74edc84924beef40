"""Data models for the supervisor system.

This module defines the core data types for command supervision:
- State: Lifecycle states, each with a display style and abbreviation
- RestartReason: Why a supervised process exited
- StateChanged, OutputReceived, Closed: Events sent to the manager
- WatchSpec: Resolved watch settings for a command
- OutputPatterns: Compiled output classification patterns
- CommandSpec: Immutable description of a supervised command
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from mrm.config import CommandConfiguration, WatchConfiguration

StreamName = Literal["stdout", "stderr"]


class State(StrEnum):
    """Command lifecycle states.

    - INITIALIZING: Process spawned, no pattern matched yet
    - INSTALLING: Install steps are running before the first start
    - BUILDING: Output matched a ``building`` pattern
    - READY: Output matched a ``ready`` pattern
    - FAILED: Output matched a ``failed`` pattern
    - CLOSED: Process exited
    - COMPLETE: Install step exited successfully

    The status line abbreviates a state to the first letter of its name, so
    INITIALIZING and INSTALLING both show ``I`` and CLOSED and COMPLETE both
    show ``C``. Those pairs are told apart by their style only.
    """

    INITIALIZING = "initializing"
    INSTALLING = "installing"
    BUILDING = "building"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"
    COMPLETE = "complete"

    @property
    def style(self) -> str:
        """Return the rich style used to display this state."""
        return _STATE_STYLES[self]

    @property
    def initial(self) -> str:
        """Return the single-letter abbreviation shown in the status line."""
        return self.name[0]


_STATE_STYLES: dict[State, str] = {
    State.INITIALIZING: "bold magenta",
    State.INSTALLING: "bold blue",
    State.BUILDING: "bold cyan",
    State.READY: "bold green",
    State.FAILED: "bold red",
    State.CLOSED: "bold dark_red",
    State.COMPLETE: "bold green",
}


class RestartReason(StrEnum):
    """Why a supervised process run ended.

    - CRASH: The process exited on its own and goes through crash handling
    - WATCH_TRIGGERED: The process was killed to reload after a file change
    - SHUTDOWN: The process was killed because supervision is stopping

    Only CRASH runs are reported as unexpected exits.
    """

    CRASH = "crash"
    WATCH_TRIGGERED = "watch_triggered"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True, slots=True)
class StateChanged:
    """A supervisor moved to a new state."""

    name: str
    state: State


@dataclass(frozen=True, slots=True)
class OutputReceived:
    """A chunk of output read from a supervised process."""

    name: str
    stream: StreamName
    data: str


@dataclass(frozen=True, slots=True)
class Closed:
    """A supervised process exited unexpectedly.

    Attributes:
        name: Name of the supervisor.
        exit_code: The process exit code.
        restart: Schedules a respawn after the restart delay, or None when
            the command must not be restarted (a failed install step).
    """

    name: str
    exit_code: int
    restart: Callable[[], None] | None = field(default=None, compare=False)


SupervisorEvent = StateChanged | OutputReceived | Closed


@dataclass(frozen=True, slots=True)
class WatchSpec:
    """Resolved watch settings.

    Attributes:
        paths: Absolute paths to watch.
        ignore: Extra gitignore-style patterns to exclude.
        default_ignore: Whether the default dependency-tree ignores apply.
        recursive: Whether subdirectories are watched.
        debounce_ms: Milliseconds used to group changes into one event.
    """

    paths: tuple[Path, ...]
    ignore: tuple[str, ...] = ()
    default_ignore: bool = True
    recursive: bool = True
    debounce_ms: int = 1600

    @classmethod
    def from_configuration(
        cls,
        config: WatchConfiguration,
        *,
        cwd: Path | None = None,
    ) -> WatchSpec:
        """Resolve watch configuration against a working directory.

        Args:
            config: The validated watch configuration.
            cwd: Directory relative paths are resolved against. Defaults
                to the current directory.

        Returns:
            The resolved WatchSpec.
        """
        base = cwd if cwd is not None else Path.cwd()
        paths = tuple((base / path).resolve() for path in config.paths)
        return cls(
            paths=paths,
            ignore=config.options.ignore,
            default_ignore=config.options.default_ignore,
            recursive=config.options.recursive,
            debounce_ms=config.options.debounce_ms,
        )


def _compile(patterns: Iterable[str]) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


@dataclass(frozen=True, slots=True)
class OutputPatterns:
    """Compiled, case-insensitive output classification patterns."""

    building: tuple[re.Pattern[str], ...] = ()
    ready: tuple[re.Pattern[str], ...] = ()
    failed: tuple[re.Pattern[str], ...] = ()

    @classmethod
    def compile(
        cls,
        *,
        building: Iterable[str] = (),
        ready: Iterable[str] = (),
        failed: Iterable[str] = (),
    ) -> OutputPatterns:
        """Compile pattern strings."""
        return cls(
            building=_compile(building),
            ready=_compile(ready),
            failed=_compile(failed),
        )

    def by_priority(self) -> tuple[tuple[State, tuple[re.Pattern[str], ...]], ...]:
        """Return the pattern lists in the order they are tested."""
        return (
            (State.READY, self.ready),
            (State.BUILDING, self.building),
            (State.FAILED, self.failed),
        )


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """Immutable description of a supervised command.

    Attributes:
        name: Display name.
        command: Executable to run.
        args: Arguments passed to the executable.
        cwd: Working directory for the process.
        env: Environment variables merged over the inherited environment.
        shell: Whether the command line runs through the system shell.
        watch: Paths that trigger a restart on change.
        install: Steps run in order before the first start.
        patterns: Output classification patterns.
        tags: Tags matched by the include filter.
    """

    name: str
    command: str
    args: tuple[str, ...] = ()
    cwd: Path | None = None
    env: Mapping[str, str] = field(default_factory=dict)
    shell: bool = False
    watch: WatchSpec | None = None
    install: tuple[CommandSpec, ...] = ()
    patterns: OutputPatterns = field(default_factory=OutputPatterns)
    tags: tuple[str, ...] = ()

    @classmethod
    def from_configuration(
        cls,
        config: CommandConfiguration,
        *,
        parent: str | None = None,
        parent_cwd: Path | None = None,
    ) -> CommandSpec:
        """Build a command spec from validated configuration.

        Install steps are named ``<parent>:<step name>``, using ``install``
        when the step has no name of its own.

        Args:
            config: The validated command configuration.
            parent: Name of the command this is an install step of.
            parent_cwd: Working directory inherited by install steps that
                do not set their own.

        Returns:
            The command spec, with install steps converted recursively.
        """
        if parent is None:
            name = config.display_name
        else:
            name = f"{parent}:{config.name or 'install'}"

        cwd = config.options.cwd if config.options.cwd is not None else parent_cwd
        watch = (
            WatchSpec.from_configuration(config.watch, cwd=cwd)
            if config.watch is not None
            else None
        )
        return cls(
            name=name,
            command=config.command,
            args=config.args,
            cwd=cwd,
            env=dict(config.options.env),
            shell=config.options.shell,
            watch=watch,
            install=tuple(
                cls.from_configuration(step, parent=name, parent_cwd=cwd)
                for step in config.install
            ),
            patterns=OutputPatterns.compile(
                building=config.building,
                ready=config.ready,
                failed=config.failed,
            ),
            tags=config.tags,
        )

    @property
    def command_line(self) -> tuple[str, ...]:
        """Return the command followed by its arguments."""
        return (self.command, *self.args)
