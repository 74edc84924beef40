"""Terminal rendering for supervised commands.

This module provides the StatusDisplay, the single writer of the
terminal. Command output and state announcements scroll above a status
line that is erased and rewritten in place after every write.
"""

from __future__ import annotations

import getpass
from typing import TYPE_CHECKING, final

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType
from rich.style import Style
from rich.text import Text

from ._classifier import split_lines

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._models import State, StreamName


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


@final
class StatusDisplay:
    """Renders command output, state changes and the status line.

    Output is written as ``[name] line`` with continuation lines indented
    under the prefix and marked with ``|``:
    - stdout: Plain prefix
    - stderr: Prefix and bar in the error style
    - States: Whole announcement in the state's style

    The status line shows ``[user]`` followed by one ``name{L}`` token per
    command, where L is the first letter of its state. Before anything else
    is written, exactly as many columns as the last status line occupied are
    blanked out. The status line is only drawn on a terminal; piped output
    gets the scrolling lines alone.
    """

    __slots__ = ("_console", "_error_style", "_status_length", "_user")

    def __init__(
        self,
        console: Console | None = None,
        *,
        user: str | None = None,
    ) -> None:
        """Initialize the display.

        Args:
            console: Rich Console instance for output. If None, creates a new one.
            user: Name shown at the start of the status line. Defaults to the
                invoking user.
        """
        self._console = console or Console(highlight=False)
        self._user = user if user is not None else _current_user()
        self._error_style = Style(color="red", bold=True)
        self._status_length = 0

    @property
    def status_length(self) -> int:
        """Return the visible width of the status line currently on screen."""
        return self._status_length

    def clear_status(self) -> None:
        """Erase the status line written last, if any."""
        if self._status_length == 0:
            return
        # Text output strips carriage returns, so they go out as control codes
        carriage_return = Control(ControlType.CARRIAGE_RETURN)
        self._console.control(carriage_return)
        self._console.out(" " * self._status_length, end="", highlight=False)
        self._console.control(carriage_return)
        self._status_length = 0

    def status_text(self, statuses: Iterable[tuple[str, State]]) -> Text:
        """Build the status line.

        Args:
            statuses: (name, state) pairs in display order.

        Returns:
            The styled status line.
        """
        text = Text(f"[{self._user}] ")
        for index, (name, state) in enumerate(statuses):
            if index:
                _ = text.append(" ")
            _ = text.append(f"{name}{{{state.initial}}}", style=state.style)
        return text

    def write_status(self, statuses: Iterable[tuple[str, State]]) -> None:
        """Write the status line without a trailing newline, on terminals only.

        Args:
            statuses: (name, state) pairs in display order.
        """
        if not self._console.is_terminal:
            return
        text = self.status_text(statuses)
        self._console.print(text, end="", soft_wrap=True)
        self._status_length = text.cell_len

    def write_state(self, name: str, state: State) -> None:
        """Announce a state change.

        Args:
            name: Name of the command.
            state: Its new state.
        """
        text = Text(f"[{name}] {state.value}...", style=state.style)
        self._console.print(text, soft_wrap=True)

    def write_output(self, name: str, stream: StreamName, data: str) -> None:
        """Write a chunk of command output.

        Args:
            name: Name of the command that produced the output.
            stream: Which output stream the chunk came from.
            data: The output chunk. Blank chunks write nothing.
        """
        lines = split_lines(data)
        if not lines:
            return

        prefix = f"[{name}]"
        padding = " " * (len(prefix) - 1)
        style = self._error_style if stream == "stderr" else None

        first = Text()
        _ = first.append(prefix, style=style)
        _ = first.append(" ")
        _ = first.append_text(Text.from_ansi(lines[0]))
        self._console.print(first, soft_wrap=True)

        for line in lines[1:]:
            text = Text(padding)
            _ = text.append("|", style=style)
            _ = text.append(" ")
            _ = text.append_text(Text.from_ansi(line))
            self._console.print(text, soft_wrap=True)

    def write_closed(self, name: str, exit_code: int, *, restarting: bool) -> None:
        """Announce that a command exited.

        Args:
            name: Name of the command.
            exit_code: The process exit code.
            restarting: Whether the command is about to be restarted.
        """
        text = Text()
        _ = text.append(f"[{name}]", style=self._error_style)
        if restarting:
            _ = text.append(" has quit unexpectedly, automatically restarting...")
        else:
            _ = text.append(f" exited with code {exit_code}, not restarting")
        self._console.print(text, soft_wrap=True)
