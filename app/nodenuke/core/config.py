"""nodenuke configuration and settings.

This module provides the configuration model and I/O functions for the
scanner pool, the hand-off queue, the interactive redraw tick and the
display order.

Configuration is stored in ~/.config/nodenuke/config.toml
"""

import logging
import tomllib
from pathlib import Path
from typing import Annotated, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nodenuke.core.paths import get_config_path

logger = logging.getLogger(__name__)

SortOrder = Literal["discovery", "size"]


class NodenukeConfig(BaseModel):
    """Runtime settings for nodenuke.

    Attributes:
        max_workers: Threads used for directory listing and size computation.
        queue_size: Capacity of the scanner-to-display queue.
        tick_interval_ms: Longest wait for input before the display redraws.
        sort_by: Display order once the scan completes ("discovery" keeps
            arrival order, "size" puts the largest directories first).
    """

    model_config = ConfigDict(extra="forbid")

    max_workers: Annotated[
        int,
        Field(ge=1, le=64, description="Scanner worker threads (1-64)"),
    ] = 8
    queue_size: Annotated[
        int,
        Field(ge=1, le=10000, description="Scanner hand-off queue capacity"),
    ] = 256
    tick_interval_ms: Annotated[
        int,
        Field(ge=10, le=1000, description="Redraw tick in milliseconds (10-1000)"),
    ] = 80
    sort_by: Annotated[
        SortOrder,
        Field(description="Display order after the scan completes"),
    ] = "discovery"

    @property
    def tick_interval(self) -> float:
        """Redraw tick in seconds."""
        return self.tick_interval_ms / 1000.0


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> NodenukeConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated NodenukeConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return NodenukeConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> NodenukeConfig:
    """Load configuration, falling back to defaults when the file is absent.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        The loaded configuration, or defaults if no file exists.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        logger.debug("No config file, using defaults")
        return NodenukeConfig()


def save_config(config: NodenukeConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    Creates parent directories if they don't exist.

    Args:
        config: Configuration to save.
        path: Path to save to. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "wb") as f:
            tomli_w.dump(config.model_dump(), f)
    except OSError as e:
        raise ConfigError(f"Failed to write config: {e}") from e

    logger.debug("Saved config to %s", config_path)
    return config_path
