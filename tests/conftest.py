"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest
from nodenuke.core.classifier import ClassifierContext
from nodenuke.core.models import DiscoveredDirectory, Entry


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config and state directories into the test's tmp_path."""
    base = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(base / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(base / "state"))
    return base


@pytest.fixture
def write_file() -> Callable[[Path, int], Path]:
    """Return a helper that writes a file of the given size, creating parents."""

    def _write(path: Path, size: int) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x" * size)
        return path

    return _write


@pytest.fixture
def safe_context() -> ClassifierContext:
    """Classifier context whose home is far away from tmp_path."""
    return ClassifierContext.build("/nonexistent-home/u", cwd="/")


@pytest.fixture
def make_entry() -> Callable[..., Entry]:
    """Return a factory for entries backed by made-up paths."""

    def _make(
        path: str = "/w/a/node_modules",
        size: int = 100,
        sensitive: bool = False,
        last_modified: float | None = None,
    ) -> Entry:
        return Entry.from_discovery(
            DiscoveredDirectory(
                path=path,
                size_bytes=size,
                sensitive=sensitive,
                last_modified=last_modified,
            )
        )

    return _make
