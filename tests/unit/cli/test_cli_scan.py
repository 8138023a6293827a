"""Unit tests for the scan command."""

import json
from collections.abc import Callable
from pathlib import Path

import nodenuke.core.classifier as classifier_module
import pytest
from nodenuke.cli.main import app
from nodenuke.core.classifier import ClassifierContext
from typer.testing import CliRunner

runner = CliRunner()


def _flat(output: str) -> str:
    """Collapse console line wrapping."""
    return " ".join(output.split())


@pytest.fixture
def project_tree(
    tmp_path: Path,
    write_file: Callable[[Path, int], Path],
    monkeypatch: pytest.MonkeyPatch,
) -> Path:
    """Two projects, one of them inside a fake home's hidden directory."""
    root = tmp_path / "root"
    write_file(root / "app" / "node_modules" / "a.js", 300)
    write_file(root / "home" / ".cache" / "tool" / "node_modules" / "b.js", 200)
    write_file(root / "app" / "node_modules" / "x" / "node_modules" / "c.js", 100)
    context = ClassifierContext.build(str((root / "home").resolve()))
    monkeypatch.setattr(classifier_module, "_default_context", context)
    return root


class TestScanCommand:
    """Tests for nodenuke scan."""

    def test_json_output(self, project_tree: Path) -> None:
        """JSON output lists every match with sensitivity and totals."""
        result = runner.invoke(app, ["scan", str(project_tree), "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["count"] == 2
        assert data["sensitive_count"] == 1
        assert data["total_bytes"] == 600
        assert data["complete"] is True
        by_parent = {Path(e["path"]).parent.name: e for e in data["entries"]}
        assert by_parent["app"]["size_bytes"] == 400
        assert by_parent["app"]["sensitive"] is False
        assert by_parent["tool"]["sensitive"] is True

    def test_sort_and_limit(self, project_tree: Path) -> None:
        """--sort size puts the largest first; --limit trims the listing only."""
        result = runner.invoke(
            app,
            ["scan", str(project_tree), "--format", "json", "--sort", "size", "--limit", "1"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["count"] == 2
        assert len(data["entries"]) == 1
        assert data["entries"][0]["size_bytes"] == 400

    def test_table_output(self, project_tree: Path) -> None:
        """The table report ends with a summary line."""
        result = runner.invoke(app, ["scan", str(project_tree)])

        assert result.exit_code == 0, result.output
        assert "Showing 2 of 2 directories" in _flat(result.output)
        assert "1 in sensitive locations" in _flat(result.output)

    def test_nothing_found(self, tmp_path: Path) -> None:
        """An empty tree reports that nothing was found."""
        result = runner.invoke(app, ["scan", str(tmp_path)])

        assert result.exit_code == 0
        assert "No node_modules directories found" in _flat(result.output)

    def test_missing_root(self, tmp_path: Path) -> None:
        """An invalid root exits with code 1."""
        result = runner.invoke(app, ["scan", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "does not exist" in _flat(result.output)

    def test_invalid_config_warns_and_continues(
        self, project_tree: Path, isolated_xdg: Path
    ) -> None:
        """A broken config file falls back to defaults with a warning."""
        config_path = isolated_xdg / "config" / "nodenuke" / "config.toml"
        config_path.parent.mkdir(parents=True)
        config_path.write_text("max_workers = 0\n")

        result = runner.invoke(app, ["scan", str(project_tree)])

        assert result.exit_code == 0, result.output
        assert "Using default settings" in _flat(result.output)
