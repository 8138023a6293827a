"""CLI package for nodenuke.

This package contains the Typer application and all subcommands.
"""

from nodenuke.cli.main import app

__all__ = ["app"]
