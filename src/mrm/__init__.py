"""mrm: run, watch and restart a set of long-running commands."""

from mrm.config import Configuration, load_config
from mrm.supervisor import CommandSpec, State, Supervisor, SupervisorManager

__all__ = [
    "CommandSpec",
    "Configuration",
    "State",
    "Supervisor",
    "SupervisorManager",
    "load_config",
]
