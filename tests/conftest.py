"""Shared test fixtures for studytrack.

Provides fixtures for isolated config environments, a controllable clock,
output state management, and running CLI commands against an
:class:`httpx.MockTransport`. These fixtures are discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from studytrack.models import Profile, RequestConfig
from studytrack.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and CLI log handlers after every test.

    Both hold references to the streams that were current when they were
    created. CliRunner swaps those streams per invocation, so stale
    references would write to closed files in later tests.
    """
    yield
    reset_output()
    logger = logging.getLogger("studytrack")
    for handler in list(logger.handlers):
        if getattr(handler, "_studytrack_cli", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Profile fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_profile() -> Profile:
    """A profile without auth and without retries, pointed at a fake host."""
    return Profile(
        name="test",
        base_url="http://study.test",
        request=RequestConfig(timeout=5, max_retries=0),
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config, clears the STUDYTRACK_*
    environment variables, and changes the working directory to tmp_path.
    """
    monkeypatch.setattr("studytrack.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["STUDYTRACK_PROFILE", "STUDYTRACK_BASE_URL", "STUDYTRACK_TOKEN"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format OutputManager for the duration of a test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    ``result.output`` carries stdout and stderr together; ``result.stdout``
    is only clean data when the command wrote nothing to stderr.
    """
    from typer.testing import CliRunner

    return CliRunner()
