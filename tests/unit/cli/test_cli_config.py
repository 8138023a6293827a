"""Unit tests for the config command group."""

from pathlib import Path

from nodenuke.cli.main import app
from nodenuke.core.config import load_config
from typer.testing import CliRunner

runner = CliRunner()


def _config_path(isolated_xdg: Path) -> Path:
    return isolated_xdg / "config" / "nodenuke" / "config.toml"


class TestConfigInit:
    """Tests for nodenuke config init."""

    def test_writes_defaults(self, isolated_xdg: Path) -> None:
        """init writes a loadable default config."""
        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 0, result.output
        assert "Config written to" in result.output
        config = load_config(_config_path(isolated_xdg))
        assert config.max_workers == 8
        assert config.sort_by == "discovery"

    def test_refuses_to_overwrite(self, isolated_xdg: Path) -> None:
        """An existing file is kept unless --force is given."""
        path = _config_path(isolated_xdg)
        path.parent.mkdir(parents=True)
        path.write_text('sort_by = "size"\n')

        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 1
        assert "Config already exists" in result.output
        assert load_config(path).sort_by == "size"

    def test_force_overwrites(self, isolated_xdg: Path) -> None:
        """--force replaces the existing file."""
        path = _config_path(isolated_xdg)
        path.parent.mkdir(parents=True)
        path.write_text('sort_by = "size"\n')

        result = runner.invoke(app, ["config", "init", "--force"])

        assert result.exit_code == 0, result.output
        assert load_config(path).sort_by == "discovery"


class TestConfigShow:
    """Tests for nodenuke config show."""

    def test_defaults_without_file(self) -> None:
        """Without a file the defaults are shown."""
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0, result.output
        assert "defaults" in result.output
        assert "max_workers = 8" in result.output

    def test_shows_file_values(self, isolated_xdg: Path) -> None:
        """Values from the file are reflected."""
        path = _config_path(isolated_xdg)
        path.parent.mkdir(parents=True)
        path.write_text("queue_size = 32\n")

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0, result.output
        assert "queue_size = 32" in result.output

    def test_invalid_file_fails(self, isolated_xdg: Path) -> None:
        """A broken file is reported as an error."""
        path = _config_path(isolated_xdg)
        path.parent.mkdir(parents=True)
        path.write_text("not toml [")

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 1
        assert "Error" in result.output
