"""Operator-facing selection state.

The selection model is the interactive view over a scan session: the
entries discovered so far, which of them are checked for deletion, and
the cursor. It is only mutated from the interaction loop's thread.
"""

import logging
from dataclasses import dataclass

from nodenuke.core.models import DiscoveredDirectory, Entry, EntryStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EntryRow:
    """Immutable display row for one entry.

    Attributes:
        path: Absolute path of the directory.
        size_bytes: Recorded size.
        sensitive: Whether the classifier flagged the location.
        selected: Whether the entry is checked.
        status: Deletion lifecycle state.
        error: Failure cause when the status is FAILED.
        last_modified: Modification time in seconds since the epoch.
    """

    path: str
    size_bytes: int
    sensitive: bool
    selected: bool
    status: EntryStatus
    error: str | None
    last_modified: float | None


@dataclass(frozen=True, slots=True)
class SelectionSnapshot:
    """Rows plus cursor position, as handed to the renderer."""

    rows: tuple[EntryRow, ...]
    cursor: int


class SelectionModel:
    """Ordered entries with per-entry selection and a cursor.

    Entries are appended in arrival order. Only PENDING entries can change
    selection; the default selection (safe checked, sensitive unchecked)
    is established by :meth:`Entry.from_discovery` and never re-applied.
    """

    def __init__(self) -> None:
        self._entries: list[Entry] = []
        self._cursor = 0

    def add(self, discovery: DiscoveredDirectory) -> Entry:
        """Append a newly discovered directory.

        Args:
            discovery: Scanner record.

        Returns:
            The created entry.
        """
        entry = Entry.from_discovery(discovery)
        self._entries.append(entry)
        return entry

    def extend(self, discoveries: list[DiscoveredDirectory]) -> None:
        for discovery in discoveries:
            self.add(discovery)

    @property
    def entries(self) -> list[Entry]:
        """Entries in display order. Treat as read-only."""
        return self._entries

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._entries)

    def current(self) -> Entry | None:
        """Entry under the cursor, None if the list is empty."""
        if not self._entries:
            return None
        return self._entries[self._cursor]

    def toggle(self, index: int) -> bool:
        """Flip the selection of a PENDING entry.

        No-op for entries that have entered a deletion pass and for
        out-of-range indices.

        Returns:
            True if the selection changed.
        """
        if not 0 <= index < len(self._entries):
            return False
        entry = self._entries[index]
        if not entry.is_pending:
            return False
        entry.selected = not entry.selected
        return True

    def toggle_current(self) -> bool:
        return self.toggle(self._cursor)

    def select_all_safe_only(self) -> None:
        """Check every safe pending entry and uncheck every sensitive one.

        If the pending entries are already in exactly that state, every
        pending entry is unchecked instead, so a second press clears the
        selection.
        """
        pending = [e for e in self._entries if e.is_pending]
        already = all(e.selected == (not e.sensitive) for e in pending)
        for entry in pending:
            entry.selected = False if already else not entry.sensitive

    def select_all_including_sensitive(self) -> None:
        """Check every pending entry, sensitive ones included.

        If every pending entry is already checked, all are unchecked.
        """
        pending = [e for e in self._entries if e.is_pending]
        already = all(e.selected for e in pending)
        for entry in pending:
            entry.selected = not already

    def move_cursor(self, delta: int) -> None:
        """Move the cursor, wrapping around both ends of the list."""
        if not self._entries:
            self._cursor = 0
            return
        self._cursor = (self._cursor + delta) % len(self._entries)

    def retry_failed(self, index: int) -> bool:
        """Re-arm a FAILED entry so the next pass deletes it again.

        The entry returns to PENDING, checked, with its error cleared.

        Returns:
            True if the entry was re-armed.
        """
        if not 0 <= index < len(self._entries):
            return False
        entry = self._entries[index]
        if entry.status != EntryStatus.FAILED:
            return False
        entry.status = EntryStatus.PENDING
        entry.error = None
        entry.selected = True
        logger.debug("Re-armed failed entry %s", entry.path)
        return True

    def retry_current(self) -> bool:
        return self.retry_failed(self._cursor)

    def selected_entries(self) -> list[Entry]:
        """Entries that the next deletion pass would remove."""
        return [e for e in self._entries if e.is_marked]

    def selected_count(self) -> int:
        return sum(1 for e in self._entries if e.is_marked)

    def selected_size(self) -> int:
        return sum(e.size_bytes for e in self._entries if e.is_marked)

    def total_size(self) -> int:
        return sum(e.size_bytes for e in self._entries)

    def has_sensitive_selection(self) -> bool:
        """Check if any sensitive entry is checked for deletion."""
        return any(e.sensitive for e in self._entries if e.is_marked)

    def failed_entries(self) -> list[Entry]:
        return [e for e in self._entries if e.status == EntryStatus.FAILED]

    def remove_deleted(self) -> int:
        """Drop DELETED entries from the view.

        The cursor stays on the same entry when it survives, otherwise on
        the nearest following one.

        Returns:
            Number of entries removed.
        """
        current = self.current()
        before = len(self._entries)
        kept_before_cursor = sum(
            1 for e in self._entries[: self._cursor] if e.status != EntryStatus.DELETED
        )
        self._entries = [e for e in self._entries if e.status != EntryStatus.DELETED]

        if current is not None and current.status != EntryStatus.DELETED:
            self._cursor = self._entries.index(current)
        elif self._entries:
            self._cursor = min(kept_before_cursor, len(self._entries) - 1)
        else:
            self._cursor = 0
        return before - len(self._entries)

    def sort_by_size(self) -> None:
        """Reorder for display, largest first, keeping the cursor entry."""
        current = self.current()
        self._entries.sort(key=lambda e: e.size_bytes, reverse=True)
        if current is not None:
            self._cursor = self._entries.index(current)

    def snapshot(self) -> SelectionSnapshot:
        """Immutable rows and cursor for rendering."""
        rows = tuple(
            EntryRow(
                path=e.path,
                size_bytes=e.size_bytes,
                sensitive=e.sensitive,
                selected=e.selected,
                status=e.status,
                error=e.error,
                last_modified=e.last_modified,
            )
            for e in self._entries
        )
        return SelectionSnapshot(rows=rows, cursor=self._cursor)
