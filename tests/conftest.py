"""Shared test fixtures for mrm tests."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from rich.console import Console

from mrm.utils import create_logger


@pytest.fixture(scope="session", autouse=True)
def isolated_log_file(tmp_path_factory: pytest.TempPathFactory) -> Iterator[Path]:
    """Send every log entry written during the test run to a temporary file.

    The logger is created here, on the real filesystem, so tests using pyfakefs
    reuse the cached file handle instead of opening one inside the fake.
    """
    log_file = tmp_path_factory.mktemp("logs") / "mrm.log"
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("MRM_LOG_FILE", str(log_file))
        mp.delenv("MRM_DEBUG", raising=False)
        mp.delenv("MRM_LOG_LEVEL", raising=False)
        _ = create_logger()
        yield log_file


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def console() -> Console:
    return Console(
        width=120,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
