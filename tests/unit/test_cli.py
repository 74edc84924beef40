from io import StringIO
from pathlib import Path

import pytest
from cyclopts import App
from pytest_mock import MockerFixture
from rich.console import Console

from mrm.cli import ExitCode, create_app
from mrm.cli._shared import exit_with_error
from mrm.supervisor import SupervisorManager

CONFIG = """
version: exp
include: [web]
commands:
  - name: web
    command: npm
  - name: api
    command: python
    tags: [backend]
  - name: db
    command: postgres
"""


@pytest.fixture
def error_console() -> Console:
    return Console(file=StringIO(), width=200, color_system=None)


@pytest.fixture
def app(console: Console, error_console: Console) -> App:
    return create_app(console, error_console, exit_on_error=False)


@pytest.fixture
def run(mocker: MockerFixture):
    return mocker.patch.object(SupervisorManager, "run", new=mocker.AsyncMock())


def invoke(app: App, tokens: list[str]) -> int:
    try:
        app(tokens)
    except SystemExit as e:
        return int(e.code or 0)
    return 0


def errors(console: Console) -> str:
    return console.file.getvalue()  # pyright: ignore[reportAttributeAccessIssue]


class TestExitWithError:
    def test_prints_and_exits(self, error_console: Console) -> None:
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("boom [x]", ExitCode.LOAD_ERROR, console=error_console)

        assert exc_info.value.code == ExitCode.LOAD_ERROR
        assert errors(error_console) == "Error: boom [x]\n"


class TestRun:
    def test_runs_manager(self, app: App, tmp_path: Path, run) -> None:
        config = tmp_path / "mrm.yaml"
        config.write_text(CONFIG)

        code = invoke(app, ["--config", str(config)])

        assert code == ExitCode.SUCCESS
        run.assert_awaited_once()

    def test_discovers_config_in_cwd(
        self,
        app: App,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        run,
    ) -> None:
        (tmp_path / "mrm.toml").write_text(
            'version = "exp"\n\n[[commands]]\ncommand = "npm"\n'
        )
        monkeypatch.chdir(tmp_path)

        assert invoke(app, []) == ExitCode.SUCCESS
        run.assert_awaited_once()

    def test_patterns_union_with_config_include(
        self, app: App, tmp_path: Path, mocker: MockerFixture, run
    ) -> None:
        config = tmp_path / "mrm.yaml"
        config.write_text(CONFIG)
        spy = mocker.spy(SupervisorManager, "from_configuration")

        _ = invoke(app, ["-c", str(config), "backend"])

        manager = spy.spy_return
        assert manager.include == ("web", "backend")
        assert [s.name for s in manager.supervisors] == ["web", "api"]

    def test_missing_config_exits_with_load_error(
        self,
        app: App,
        error_console: Console,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        run,
    ) -> None:
        monkeypatch.chdir(tmp_path)

        assert invoke(app, []) == ExitCode.LOAD_ERROR
        assert "No config file found" in errors(error_console)
        run.assert_not_called()

    def test_unparseable_config_exits_with_load_error(
        self, app: App, error_console: Console, tmp_path: Path, run
    ) -> None:
        config = tmp_path / "mrm.yaml"
        config.write_text("version: exp\ncommands: [oops\n")

        assert invoke(app, ["--config", str(config)]) == ExitCode.LOAD_ERROR
        assert "Failed to parse YAML file" in errors(error_console)
        run.assert_not_called()

    def test_unsupported_version_exits_with_validation_error(
        self, app: App, error_console: Console, tmp_path: Path, run
    ) -> None:
        config = tmp_path / "mrm.yaml"
        config.write_text("version: '1'\ncommands: []\n")

        assert invoke(app, ["--config", str(config)]) == ExitCode.VALIDATION_ERROR
        assert "version" in errors(error_console)
        run.assert_not_called()

    def test_no_matching_commands(
        self, app: App, error_console: Console, tmp_path: Path, run
    ) -> None:
        config = tmp_path / "mrm.yaml"
        config.write_text(
            "version: exp\ncommands:\n  - name: web\n    command: npm\n"
        )

        assert invoke(app, ["--config", str(config), "db"]) == ExitCode.NO_COMMANDS
        assert f"No commands in {config} match db" in errors(error_console)
        run.assert_not_called()

    def test_no_commands_configured(
        self, app: App, error_console: Console, tmp_path: Path, run
    ) -> None:
        config = tmp_path / "mrm.yaml"
        config.write_text("version: exp\ncommands: []\n")

        assert invoke(app, ["--config", str(config)]) == ExitCode.NO_COMMANDS
        assert f"No commands are configured in {config}" in errors(error_console)
        run.assert_not_called()
