"""The command-line interface for mrm."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import App, Parameter
from rich.console import Console

from mrm.config import load_config
from mrm.exceptions import ConfigError, ConfigValidationError
from mrm.supervisor import StatusDisplay, SupervisorManager
from mrm.utils import create_logger

from ._shared import ExitCode, exit_with_error

HELP = "Run, watch and restart the commands declared in mrm.yaml or mrm.toml."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Create the mrm CLI application.

    Args:
        console: Console the status display writes to.
        error_console: Console for error messages.
        exit_on_error: Whether argument errors exit the process.

    Returns:
        The cyclopts application.
    """
    app = App(
        name="mrm",
        help=HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.default
    def run(  # pyright: ignore[reportUnusedFunction]
        *patterns: Annotated[
            str,
            Parameter(
                help="Only run commands whose name or tag matches one of these globs."
            ),
        ],
        config: Annotated[
            Path | None,
            Parameter(
                name=["--config", "-c"],
                help="Path to config file. Defaults to ./mrm.yaml, ./mrm.yml "
                "or ./mrm.toml.",
            ),
        ] = None,
        no_color: Annotated[
            bool, Parameter(name="--no-color", help="Disable colored output")
        ] = False,
    ) -> None:
        """Supervise the configured commands until interrupted.

        Args:
            patterns: Include filters, unioned with the config's include list.
            config: Explicit path to the config file.
            no_color: Disable colored output.
        """
        logger = create_logger(component="cli")
        errors = error_console or Console(stderr=True)

        try:
            configuration, path = load_config(config)
        except ConfigValidationError as e:
            logger.error("config_invalid", error=str(e), key=e.key)
            exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=errors)
        except ConfigError as e:
            logger.error("config_load_failed", error=str(e))
            exit_with_error(str(e), ExitCode.LOAD_ERROR, console=errors)

        display_console = console or Console(highlight=False, no_color=no_color)
        manager = SupervisorManager.from_configuration(
            configuration,
            patterns,
            display=StatusDisplay(display_console),
        )
        if not manager.supervisors:
            if manager.include:
                filters = ", ".join(manager.include)
                message = f"No commands in {path} match {filters}"
            else:
                message = f"No commands are configured in {path}"
            exit_with_error(message, ExitCode.NO_COMMANDS, console=errors)

        logger.info("run", config=str(path), commands=len(manager.supervisors))
        anyio.run(manager.run)

    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `mrm` CLI."""
    app()


if __name__ == "__main__":
    main()
