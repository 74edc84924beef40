"""Supervisor package for running and watching commands.

This package supervises long-running commands declared in configuration.
Each command's lifecycle is classified from its output, crashed commands
are restarted, and watched files trigger a reload of the whole process
tree.

Key Components:
    - CommandSpec: Immutable description of a supervised command
    - State: Lifecycle states with display style and abbreviation
    - StateChanged, OutputReceived, Closed: Events sent by supervisors
    - Supervisor: Single command state machine
    - InstallChain: Install steps run before a command first starts
    - SupervisorManager: Multi-command coordinator and status display
    - StatusDisplay: Terminal renderer

Example:
    >>> from mrm.supervisor import CommandSpec, OutputPatterns, SupervisorManager
    >>> commands = [
    ...     CommandSpec(
    ...         name="web",
    ...         command="npm",
    ...         args=("run", "dev"),
    ...         patterns=OutputPatterns.compile(ready=["Listening on"]),
    ...     ),
    ... ]
    >>> manager = SupervisorManager(commands)
    >>> await manager.run()  # Blocks until shutdown
"""

from ._classifier import classify_chunk, classify_line, split_lines
from ._filter import filter_commands, matches_include, merge_patterns
from ._manager import SupervisorManager
from ._models import (
    Closed,
    CommandSpec,
    OutputPatterns,
    OutputReceived,
    RestartReason,
    State,
    StateChanged,
    SupervisorEvent,
    WatchSpec,
)
from ._output import StatusDisplay
from ._process import AnyioProcessSpawner, PsutilTreeTerminator
from ._protocol import (
    ChangeWatcher,
    ProcessHandle,
    ProcessSpawner,
    ProcessTreeTerminator,
)
from ._supervisor import RESTART_DELAY, InstallChain, Supervisor
from ._watcher import WatchfilesChangeWatcher

__all__ = [
    "RESTART_DELAY",
    "AnyioProcessSpawner",
    "ChangeWatcher",
    "Closed",
    "CommandSpec",
    "InstallChain",
    "OutputPatterns",
    "OutputReceived",
    "ProcessHandle",
    "ProcessSpawner",
    "ProcessTreeTerminator",
    "PsutilTreeTerminator",
    "RestartReason",
    "State",
    "StateChanged",
    "StatusDisplay",
    "Supervisor",
    "SupervisorEvent",
    "SupervisorManager",
    "WatchSpec",
    "WatchfilesChangeWatcher",
    "classify_chunk",
    "classify_line",
    "filter_commands",
    "matches_include",
    "merge_patterns",
    "split_lines",
]
