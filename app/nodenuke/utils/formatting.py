"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
import time
from typing import TYPE_CHECKING

from rich.console import Console
from rich.filesize import decimal
from rich.table import Table

from nodenuke.core.theme import get_theme

if TYPE_CHECKING:
    from nodenuke.core.models import DiscoveredDirectory

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_MONTH = 30 * _DAY
_YEAR = 365 * _DAY


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def format_size(size_bytes: int) -> str:
    """Format a byte count in decimal units (kB, MB, GB)."""
    return decimal(size_bytes)


def format_age(last_modified: float | None, now: float | None = None) -> str:
    """Format a modification time as a short "time ago" label.

    Months count as 30 days and years as 365 days; each unit is rounded down.

    Args:
        last_modified: Seconds since the epoch, or None if unknown.
        now: Reference time; defaults to the current time.

    Returns:
        Labels like "just now", "42m ago", "3d ago", "2mo ago", or "-".
    """
    if last_modified is None:
        return "-"
    reference = time.time() if now is None else now
    secs = max(0, int(reference - last_modified))
    if secs < _MINUTE:
        return "just now"
    if secs < _HOUR:
        return f"{secs // _MINUTE}m ago"
    if secs < _DAY:
        return f"{secs // _HOUR}h ago"
    if secs < _WEEK:
        return f"{secs // _DAY}d ago"
    if secs < _MONTH:
        return f"{secs // _WEEK}w ago"
    if secs < _YEAR:
        return f"{secs // _MONTH}mo ago"
    return f"{secs // _YEAR}y ago"


def truncate_left(text: str, max_width: int) -> str:
    """Shorten text from the left, keeping the meaningful tail of a path.

    Args:
        text: Text to shorten.
        max_width: Maximum length of the result.

    Returns:
        The text unchanged if it fits, otherwise "…" plus its last characters.
    """
    if len(text) <= max_width:
        return text
    if max_width <= 1:
        return "…"[:max_width]
    return "…" + text[len(text) - max_width + 1 :]


def create_entry_table(title: str = "node_modules") -> Table:
    """Create a pre-configured table for listing discovered directories.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for directory display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],  # Zebra striping for readability
    )
    # Status column: minimal width, icon only, no header text
    table.add_column("", width=2, justify="center")
    table.add_column("Path", no_wrap=True, overflow="ellipsis")
    table.add_column("Modified", style="muted", justify="right")
    table.add_column("Size", style="entry.size", justify="right")
    return table


def format_entry_row(entry: DiscoveredDirectory, now: float | None = None) -> tuple[str, ...]:
    """Format a discovered directory as a table row with proper styling.

    Sensitive locations get a warning icon and highlight, safe ones a
    plain bullet.

    Args:
        entry: The discovered directory.
        now: Reference time for the age column.

    Returns:
        Tuple of (icon, path, age, size) with Rich markup.
    """
    if entry.sensitive:
        icon = "[entry.sensitive]⚠[/]"
        path = f"[entry.sensitive]{entry.path}[/]"
    else:
        icon = "[entry.safe]●[/]"
        path = f"[text]{entry.path}[/]"
    return (icon, path, format_age(entry.last_modified, now), format_size(entry.size_bytes))


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
