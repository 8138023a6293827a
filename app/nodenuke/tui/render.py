"""Rich renderables for the interactive view.

Everything here is a pure function of a :class:`ViewSnapshot` and the
terminal size, so frames can be built and inspected without a terminal.
"""

from __future__ import annotations

import time

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from nodenuke.core.loop import DeletionSummary, LoopState, ViewSnapshot
from nodenuke.core.models import EntryStatus
from nodenuke.core.selection import EntryRow
from nodenuke.utils.formatting import format_age, format_size, truncate_left

# Lines taken by everything but the entry rows: header panel, table
# header and borders, status line and help bar.
_CHROME_LINES = 11
_CONFIRM_LINES = 6
_MIN_VISIBLE_ROWS = 3

_MARKER_WIDTH = 3
_AGE_WIDTH = 9
_SIZE_WIDTH = 10
# Column padding and table borders.
_TABLE_OVERHEAD = 13

_HELP: dict[LoopState, str] = {
    LoopState.SCANNING: "↑/↓ move  space toggle  a safe  A all  enter delete  q quit",
    LoopState.REVIEWING: "↑/↓ move  space toggle  a safe  A all  r retry  enter delete  q quit",
    LoopState.CONFIRM_PENDING: "y/enter confirm  n/esc cancel",
    LoopState.DELETING: "c cancel  q quit",
    LoopState.DONE: "any key continue  q quit",
}


def visible_window(count: int, cursor: int, height: int) -> tuple[int, int]:
    """Compute the slice of rows to show so the cursor stays visible.

    Args:
        count: Number of rows.
        cursor: Cursor index.
        height: Number of rows that fit.

    Returns:
        (start, stop) indices.
    """
    if count <= height:
        return 0, count
    start = max(0, min(cursor - height // 2, count - height))
    return start, start + height


def _marker(row: EntryRow) -> Text:
    if row.status == EntryStatus.DELETING:
        return Text(" ⋯ ", style="entry.deleting")
    if row.status == EntryStatus.DELETED:
        return Text(" ✔ ", style="entry.deleted")
    if row.status == EntryStatus.FAILED:
        return Text(" ✗ ", style="entry.failed")
    return Text("[✓]" if row.selected else "[ ]", style="success" if row.selected else "muted")


def _path_cell(row: EntryRow, width: int) -> Text:
    prefix = "⚠ " if row.sensitive else ""
    style = "entry.sensitive" if row.sensitive else "text"
    if row.status == EntryStatus.FAILED and row.error:
        suffix = f"  ({row.error})"
        room = max(8, width - len(prefix) - len(suffix))
        text = Text(prefix + truncate_left(row.path, room), style=style)
        text.append(suffix, style="entry.failed")
        return text
    if row.status == EntryStatus.DELETED:
        style = "entry.deleted"
    return Text(prefix + truncate_left(row.path, max(8, width - len(prefix))), style=style)


def build_entry_table(snapshot: ViewSnapshot, width: int, height: int, now: float) -> Table:
    """Build the entry list for the visible window.

    Args:
        snapshot: Current view state.
        width: Terminal width.
        height: Number of entry rows that fit.
        now: Reference time for the age column.

    Returns:
        A table of checkbox, path, age and size columns.
    """
    path_width = max(16, width - _MARKER_WIDTH - _AGE_WIDTH - _SIZE_WIDTH - _TABLE_OVERHEAD)
    table = Table(
        show_header=True,
        header_style="bold_header",
        border_style="border",
        expand=True,
        pad_edge=False,
    )
    table.add_column("", width=_MARKER_WIDTH, no_wrap=True)
    table.add_column("Path", no_wrap=True, ratio=1)
    table.add_column("Modified", width=_AGE_WIDTH, justify="right", style="muted", no_wrap=True)
    table.add_column("Size", width=_SIZE_WIDTH, justify="right", style="entry.size", no_wrap=True)

    start, stop = visible_window(len(snapshot.rows), snapshot.cursor, height)
    for index in range(start, stop):
        row = snapshot.rows[index]
        table.add_row(
            _marker(row),
            _path_cell(row, path_width),
            format_age(row.last_modified, now),
            format_size(row.size_bytes),
            style="entry.cursor" if index == snapshot.cursor else None,
        )
    return table


def build_header(snapshot: ViewSnapshot, width: int) -> Panel:
    """Title panel with the root and scan status."""
    scan = snapshot.scan
    if scan.complete:
        word = "cancelled" if scan.cancelled else "complete"
        status: RenderableType = Text.assemble(
            (f"Scan {word}: ", "success" if not scan.cancelled else "warning"),
            (f"{scan.entry_count} found, {format_size(scan.total_bytes)}", "text"),
        )
    else:
        status = Spinner(
            "dots",
            text=Text.assemble(
                (f"Scanning… {scan.entry_count} found  ", "info"),
                (truncate_left(scan.current_path, max(10, width - 40)), "muted"),
            ),
            style="info",
        )

    lines: list[RenderableType] = [
        Text.assemble(
            ("root ", "muted"), (truncate_left(snapshot.root, max(10, width - 10)), "text")
        ),
        status,
    ]
    if scan.warning_count:
        lines.append(Text(f"{scan.warning_count} directories could not be read", style="warning"))
    if scan.error:
        lines.append(Text(scan.error, style="error"))
    return Panel(Group(*lines), title="[bold_header]nodenuke[/]", border_style="border")


def build_confirm(snapshot: ViewSnapshot) -> Panel:
    """Confirmation prompt, with a distinct warning for sensitive entries."""
    lines: list[RenderableType] = [
        Text(
            f"Delete {snapshot.selected_count} directories "
            f"({format_size(snapshot.selected_bytes)})?",
            style="text",
        ),
    ]
    if snapshot.sensitive_selected:
        lines.append(
            Text(
                "⚠ The selection includes directories in sensitive locations "
                "that may belong to installed applications.",
                style="entry.sensitive",
            )
        )
    lines.append(Text("This cannot be undone.", style="muted"))
    style = "warning" if snapshot.sensitive_selected else "border"
    return Panel(Group(*lines), title="[warning]Confirm[/]", border_style=style)


def build_progress(snapshot: ViewSnapshot, width: int) -> RenderableType:
    """Deletion progress bar with the path just processed."""
    deletion = snapshot.deletion
    if deletion is None:
        return Text("")
    label = "Cancelling…" if deletion.cancelling else "Deleting…"
    return Group(
        Text.assemble(
            (f"{label} {deletion.done}/{deletion.total}  ", "info"),
            (f"{format_size(deletion.bytes_freed)} freed", "success"),
        ),
        ProgressBar(
            total=max(1, deletion.total), completed=deletion.done, width=max(10, width - 4)
        ),
        Text(truncate_left(deletion.current_path, max(10, width - 4)), style="muted"),
    )


def build_summary(snapshot: ViewSnapshot, width: int) -> Panel:
    """Summary of the last deletion pass, or the nothing-found notice."""
    summary: DeletionSummary | None = snapshot.summary
    if summary is None:
        message = "No node_modules directories found."
        if snapshot.scan.cancelled:
            message = "Scan cancelled before anything was found."
        return Panel(
            Text(message, style="info"), title="[bold_header]Done[/]", border_style="border"
        )

    lines: list[RenderableType] = [
        Text.assemble(
            ("Removed ", "text"),
            (str(summary.deleted), "success"),
            (" directories, freed ", "text"),
            (format_size(summary.bytes_freed), "success"),
        ),
    ]
    if summary.cancelled:
        lines.append(Text(f"Cancelled; {summary.skipped} left untouched.", style="warning"))
    if summary.failed:
        lines.append(Text(f"{summary.failed} failed:", style="error"))
        for path, error in summary.errors:
            shown = truncate_left(path, max(10, width - 30))
            lines.append(Text(f"  {shown}: {error}", style="entry.failed"))
    return Panel(Group(*lines), title="[bold_header]Done[/]", border_style="border")


def build_status(snapshot: ViewSnapshot) -> Text:
    """Selection aggregates line."""
    return Text.assemble(
        ("Selected ", "muted"),
        (f"{snapshot.selected_count}", "text"),
        (f" of {len(snapshot.rows)}  ", "muted"),
        (format_size(snapshot.selected_bytes), "success"),
        (f" of {format_size(snapshot.listed_bytes)}", "muted"),
    )


def build_view(
    snapshot: ViewSnapshot,
    width: int,
    height: int,
    now: float | None = None,
) -> RenderableType:
    """Build one full frame.

    Args:
        snapshot: Current view state.
        width: Terminal width in cells.
        height: Terminal height in lines.
        now: Reference time for ages; defaults to the current time.

    Returns:
        Renderable for the whole screen.
    """
    reference = time.time() if now is None else now
    state = snapshot.state
    parts: list[RenderableType] = [build_header(snapshot, width)]

    if state == LoopState.DONE:
        parts.append(build_summary(snapshot, width))
    elif state == LoopState.SCANNING and not snapshot.rows:
        parts.append(Text("Searching for node_modules…", style="muted"))
    else:
        reserved = _CHROME_LINES
        if state in (LoopState.CONFIRM_PENDING, LoopState.DELETING):
            reserved += _CONFIRM_LINES
        rows = max(_MIN_VISIBLE_ROWS, height - reserved)
        parts.append(build_entry_table(snapshot, width, rows, reference))
        if state == LoopState.CONFIRM_PENDING:
            parts.append(build_confirm(snapshot))
        elif state == LoopState.DELETING:
            parts.append(build_progress(snapshot, width))
        parts.append(build_status(snapshot))

    parts.append(Text(_HELP.get(state, ""), style="muted"))
    return Group(*parts)
