"""Unit tests for the interactive clean command.

The terminal frontend is replaced by a scripted one, so the real loop,
session and executor run without a TTY.
"""

from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from typing import Any
from unittest.mock import MagicMock, patch

import nodenuke.core.classifier as classifier_module
import pytest
from nodenuke.cli.main import app
from nodenuke.core.classifier import ClassifierContext
from nodenuke.core.loop import Frontend, InputEvent, LoopState, ViewSnapshot
from typer.testing import CliRunner

runner = CliRunner()


def _flat(output: str) -> str:
    """Collapse console line wrapping."""
    return " ".join(output.split())


class FakeFrontend(Frontend):
    """Waits for the list to show up, then replays its events."""

    def __init__(self, events: list[InputEvent]) -> None:
        self.events = events
        self.state = LoopState.SCANNING
        self.scan_complete = False

    def __enter__(self) -> "FakeFrontend":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        return None

    def render(self, snapshot: ViewSnapshot) -> None:
        self.state = snapshot.state
        self.scan_complete = snapshot.scan.complete

    def next_event(self, timeout: float) -> InputEvent | None:
        if not self.scan_complete or self.state == LoopState.DELETING:
            return None
        if not self.events:
            return InputEvent.QUIT
        return self.events.pop(0)


@pytest.fixture
def tty_sys() -> Any:
    """Pretend stdin and stdout are terminals."""
    fake_sys = MagicMock()
    fake_sys.stdin.isatty.return_value = True
    fake_sys.stdout.isatty.return_value = True
    fake_sys.stdin.fileno.return_value = 0
    with patch("nodenuke.cli.commands.clean.sys", fake_sys):
        yield fake_sys


@pytest.fixture
def tree(
    tmp_path: Path,
    write_file: Callable[[Path, int], Path],
    monkeypatch: pytest.MonkeyPatch,
) -> Path:
    root = tmp_path / "work"
    write_file(root / "p1" / "node_modules" / "a.js", 1000)
    write_file(root / "p2" / "node_modules" / "b.js", 2000)
    monkeypatch.setattr(
        classifier_module, "_default_context", ClassifierContext.build("/nonexistent-home")
    )
    return root


class TestCleanCommand:
    """Tests for nodenuke clean."""

    def test_requires_terminal(self, tmp_path: Path) -> None:
        """Without a TTY the command refuses to start."""
        result = runner.invoke(app, ["clean", str(tmp_path)])

        assert result.exit_code == 1
        assert "needs a terminal" in _flat(result.output)

    def test_missing_root(self, tmp_path: Path, tty_sys: Any) -> None:
        """An invalid root fails before the interactive view opens."""
        with patch("nodenuke.cli.commands.clean.RichFrontend") as frontend_cls:
            result = runner.invoke(app, ["clean", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "does not exist" in _flat(result.output)
        frontend_cls.assert_not_called()

    def test_quit_without_deleting(self, tree: Path, tty_sys: Any) -> None:
        """Quitting right away deletes nothing."""
        frontend = FakeFrontend([InputEvent.QUIT])
        with patch("nodenuke.cli.commands.clean.RichFrontend", return_value=frontend):
            result = runner.invoke(app, ["clean", str(tree)])

        assert result.exit_code == 0, result.output
        assert "Nothing was deleted" in result.output
        assert (tree / "p1" / "node_modules").exists()

    def test_delete_all_safe(self, tree: Path, tty_sys: Any) -> None:
        """Confirming the default selection removes every safe entry."""
        frontend = FakeFrontend(
            [InputEvent.REQUEST_DELETE, InputEvent.CONFIRM_YES, InputEvent.QUIT]
        )
        with patch("nodenuke.cli.commands.clean.RichFrontend", return_value=frontend):
            result = runner.invoke(app, ["clean", str(tree)])

        assert result.exit_code == 0, result.output
        assert "Removed" in result.output
        assert not (tree / "p1" / "node_modules").exists()
        assert not (tree / "p2" / "node_modules").exists()
        assert (tree / "p1").exists()
