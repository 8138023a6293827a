"""Scan command implementation.

Lists node_modules directories below a root without deleting anything.
"""

import json
import time
from pathlib import Path
from typing import Annotated

import typer

from nodenuke.cli.types import OutputFormat, SortChoice, create_session, load_settings
from nodenuke.core.models import DiscoveredDirectory
from nodenuke.core.scanner import ScanRootError, validate_root
from nodenuke.core.session import ScanSession
from nodenuke.utils.formatting import (
    console,
    create_entry_table,
    format_entry_row,
    format_size,
    print_error,
    print_info,
    print_warning,
)

# Poll interval while draining the session on the main thread.
_DRAIN_SECONDS = 0.1


def _collect(session: ScanSession) -> list[DiscoveredDirectory]:
    """Drain a running session until the walk ends.

    Returns:
        All entries in discovery order.
    """
    found: list[DiscoveredDirectory] = []
    while not session.wait(_DRAIN_SECONDS):
        found.extend(session.poll())
    found.extend(session.poll())
    return found


def _to_dict(entry: DiscoveredDirectory) -> dict[str, object]:
    return {
        "path": entry.path,
        "size_bytes": entry.size_bytes,
        "sensitive": entry.sensitive,
        "last_modified": entry.last_modified,
    }


def scan(
    root: Annotated[
        Path,
        typer.Argument(
            help="Directory to search for node_modules.",
            show_default="current directory",
        ),
    ] = Path("."),
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    sort: Annotated[
        SortChoice | None,
        typer.Option(
            "--sort",
            "-s",
            help="Order results by discovery or size.",
            case_sensitive=False,
        ),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            help="Limit number of directories to display.",
        ),
    ] = None,
) -> None:
    """Report node_modules directories with their size and sensitivity.

    Nothing is deleted. Totals always cover every directory found, even
    when --limit trims the listing.

    Examples:
        nodenuke scan                       # Scan the current directory
        nodenuke scan ~/code --sort size    # Largest first
        nodenuke scan --format json         # Output as JSON
        nodenuke scan --limit 20            # Show first 20 directories
    """
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

    interrupted = False
    try:
        if output_format == OutputFormat.TABLE:
            with console.status(f"Scanning {resolved}..."):
                entries = _collect(session)
        else:
            entries = _collect(session)
    except KeyboardInterrupt:
        session.cancel()
        session.wait()
        entries = session.entries()
        interrupted = True

    sort_by = sort.value if sort is not None else config.sort_by
    if sort_by == SortChoice.SIZE.value:
        entries.sort(key=lambda e: e.size_bytes, reverse=True)

    warnings = session.warnings()
    total_bytes = sum(e.size_bytes for e in entries)
    sensitive_count = sum(1 for e in entries if e.sensitive)
    display = entries[:limit] if limit else entries

    if output_format == OutputFormat.JSON:
        result = {
            "root": str(resolved),
            "complete": not interrupted,
            "count": len(entries),
            "sensitive_count": sensitive_count,
            "total_bytes": total_bytes,
            "warnings": len(warnings),
            "entries": [_to_dict(e) for e in display],
        }
        console.print_json(json.dumps(result))
    elif not entries:
        print_info(f"No node_modules directories found under {resolved}.")
    else:
        now = time.time()
        table = create_entry_table(f"node_modules under {resolved}")
        for entry in display:
            table.add_row(*format_entry_row(entry, now))
        console.print(table)

        summary = f"Showing {len(display)} of {len(entries)} directories, "
        summary += f"{format_size(total_bytes)} total"
        if sensitive_count:
            summary += f" ({sensitive_count} in sensitive locations)"
        console.print(f"\n[dim]{summary}[/]")

    if session.error:
        print_warning(session.error)
    if warnings and output_format == OutputFormat.TABLE:
        print_warning(f"{len(warnings)} paths could not be read (see the log for details).")
    if interrupted:
        print_warning("Scan interrupted; results are incomplete.")
        raise typer.Exit(code=130)
