"""Configuration models.

This module provides Pydantic models for the mrm configuration file:
the supervised commands, their spawn options, watch settings, and the
output patterns used to classify their lifecycle.
"""

import re
from pathlib import Path  # noqa: TC003
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SUPPORTED_VERSION = "exp"
"""The only configuration version this release understands."""

DEFAULT_WATCH_DEBOUNCE_MS = 1600


class CommandOptions(BaseModel):
    """Options passed through to the process spawner."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, extra="ignore", coerce_numbers_to_str=True
    )

    cwd: Path | None = Field(
        default=None, description="Working directory for the process."
    )
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Environment variables merged over the inherited environment.",
    )
    shell: bool = Field(
        default=False, description="Run the command line through the system shell."
    )


class WatchOptions(BaseModel):
    """Options for the file watcher."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    ignore: tuple[str, ...] = Field(
        default=(), description="Extra gitignore-style patterns to ignore."
    )
    default_ignore: bool = Field(
        default=True,
        description="Exclude dependency and tooling directories such as node_modules.",
    )
    recursive: bool = Field(default=True, description="Watch subdirectories.")
    debounce_ms: int = Field(
        default=DEFAULT_WATCH_DEBOUNCE_MS,
        ge=0,
        description="Milliseconds to group changes into a single event.",
    )


class WatchConfiguration(BaseModel):
    """Paths that trigger a restart when they change.

    Accepts a single path, a list of paths, or a mapping with ``paths``
    and ``options`` keys.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    paths: tuple[str, ...] = Field(min_length=1, description="Paths to watch.")
    options: WatchOptions = Field(default_factory=WatchOptions)

    @model_validator(mode="before")
    @classmethod
    def _expand_shorthand(cls, data: Any) -> Any:  # pyright: ignore[reportAny,reportExplicitAny]
        if isinstance(data, str):
            return {"paths": [data]}
        if isinstance(data, list | tuple):
            return {"paths": list(data)}  # pyright: ignore[reportUnknownArgumentType]
        return data


class CommandConfiguration(BaseModel):
    """A supervised command as declared in the configuration file."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, extra="ignore", coerce_numbers_to_str=True
    )

    name: str | None = Field(
        default=None, description="Display name. Defaults to the command."
    )
    command: str = Field(min_length=1, description="Executable to run.")
    args: tuple[str, ...] = Field(default=(), description="Command arguments.")
    options: CommandOptions = Field(default_factory=CommandOptions)
    watch: WatchConfiguration | None = Field(
        default=None, description="Paths that trigger a restart on change."
    )
    building: tuple[str, ...] = Field(
        default=(), description="Patterns that mark the command as building."
    )
    ready: tuple[str, ...] = Field(
        default=(), description="Patterns that mark the command as ready."
    )
    failed: tuple[str, ...] = Field(
        default=(), description="Patterns that mark the command as failed."
    )
    install: tuple["CommandConfiguration", ...] = Field(
        default=(), description="Steps run once, in order, before the first start."
    )
    tags: tuple[str, ...] = Field(
        default=(), description="Tags matched by the include filter."
    )

    @field_validator("building", "ready", "failed")
    @classmethod
    def _check_patterns(cls, patterns: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in patterns:
            try:
                _ = re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                msg = f"invalid regular expression {pattern!r}: {e}"
                raise ValueError(msg) from e
        return patterns

    @property
    def display_name(self) -> str:
        """Return the configured name, falling back to the command."""
        return self.name or self.command


class Configuration(BaseModel):
    """Top-level mrm configuration."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    version: Literal["exp"] = Field(description="Configuration format version.")
    commands: tuple[CommandConfiguration, ...] = Field(default=())
    include: tuple[str, ...] = Field(
        default=(), description="Glob patterns restricting which commands run."
    )

    @model_validator(mode="after")
    def _check_unique_names(self) -> "Configuration":
        seen: set[str] = set()
        for command in self.commands:
            name = command.display_name
            if name in seen:
                msg = f"duplicate command name {name!r}"
                raise ValueError(msg)
            seen.add(name)
        return self
