"""Clean command implementation.

Runs the interactive review-and-delete session.
"""

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from nodenuke.cli.types import SortChoice, create_session, load_settings
from nodenuke.core.loop import DeletionSummary, InteractionLoop
from nodenuke.core.scanner import ScanRootError, validate_root
from nodenuke.tui import RichFrontend
from nodenuke.utils.formatting import (
    console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)

logger = logging.getLogger(__name__)


def _print_summary(summary: DeletionSummary | None) -> None:
    """Print the last deletion pass after the screen is restored."""
    if summary is None:
        print_info("Nothing was deleted.")
        return
    if summary.deleted:
        print_success(
            f"Removed {summary.deleted} directories, freed {format_size(summary.bytes_freed)}."
        )
    for path, error in summary.errors:
        print_warning(f"Could not delete {path}: {error}")
    if summary.cancelled:
        print_warning(f"Deletion cancelled; {summary.skipped} directories left untouched.")


def clean(
    root: Annotated[
        Path,
        typer.Argument(
            help="Directory to search for node_modules.",
            show_default="current directory",
        ),
    ] = Path("."),
    sort: Annotated[
        SortChoice | None,
        typer.Option(
            "--sort",
            "-s",
            help="Order once the scan completes: discovery or size.",
            case_sensitive=False,
        ),
    ] = None,
) -> None:
    """Find node_modules directories and delete the ones you pick.

    Safe locations are pre-selected; directories that look like they
    belong to installed applications are flagged and left unchecked.

    Examples:
        nodenuke clean                  # Search the current directory
        nodenuke clean ~/projects       # Search a specific tree
        nodenuke clean --sort size      # Largest first once scanning ends
    """
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        print_error("The interactive view needs a terminal. Use 'nodenuke scan' instead.")
        raise typer.Exit(code=1)

    try:
        resolved = validate_root(root)
    except ScanRootError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    config = load_settings()
    session, scanner = create_session(config)
    try:
        session.start(scanner, resolved)
    except ScanRootError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    loop = InteractionLoop(
        session,
        sort_by=sort.value if sort is not None else config.sort_by,
        tick_interval=config.tick_interval,
        root=str(resolved),
    )

    try:
        with RichFrontend(console, sys.stdin.fileno()) as frontend:
            summary = loop.run(frontend)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        print_warning("Interrupted.")
        _print_summary(loop.summary)
        raise typer.Exit(code=130) from None

    _print_summary(summary)
