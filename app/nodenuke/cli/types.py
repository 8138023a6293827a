"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from enum import Enum

from nodenuke.core.config import ConfigError, NodenukeConfig, load_config_or_default
from nodenuke.core.scanner import DirectoryScanner
from nodenuke.core.session import ScanSession
from nodenuke.utils.formatting import print_warning


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


class SortChoice(str, Enum):
    """Display order once a scan completes."""

    DISCOVERY = "discovery"
    SIZE = "size"


def load_settings() -> NodenukeConfig:
    """Load the user configuration, warning and falling back on errors.

    Returns:
        The effective configuration.
    """
    try:
        return load_config_or_default()
    except ConfigError as e:
        print_warning(f"{e}. Using default settings.")
        return NodenukeConfig()


def create_session(config: NodenukeConfig) -> tuple[ScanSession, DirectoryScanner]:
    """Create a scan session and a scanner that reports into it.

    Args:
        config: Effective configuration.

    Returns:
        Tuple of (session, scanner), not yet started.
    """
    session = ScanSession(queue_size=config.queue_size)
    scanner = DirectoryScanner(max_workers=config.max_workers, on_warning=session.add_warning)
    return session, scanner
