"""Unit tests for the top-level CLI application."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from nodenuke import __version__
from nodenuke.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo the root logger changes made by the callback."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.WARNING)


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        """--version prints the version and exits cleanly."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"nodenuke version {__version__}" in result.output

    def test_no_args_shows_help(self) -> None:
        """Running without a command prints usage."""
        result = runner.invoke(app, [])

        assert "Usage" in result.output
        assert "clean" in result.output
        assert "scan" in result.output

    def test_verbose_logs_to_state_file(self, tmp_path: Path, isolated_xdg: Path) -> None:
        """--verbose writes debug records to the log file, not the terminal."""
        result = runner.invoke(app, ["--verbose", "scan", str(tmp_path), "--format", "json"])

        assert result.exit_code == 0, result.output
        log_path = isolated_xdg / "state" / "nodenuke" / "nodenuke.log"
        assert log_path.exists()
        assert logging.getLogger().level == logging.DEBUG
        assert "DEBUG" not in result.output
