"""CLI commands for nodenuke.

This package contains all subcommand implementations.
"""

from nodenuke.cli.commands import clean, config, scan

__all__ = ["clean", "config", "scan"]
