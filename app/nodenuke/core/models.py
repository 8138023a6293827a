"""Domain models for discovered node_modules directories.

This module defines the data structures shared by the scanner, the scan
session, the selection model and the deletion executor: the immutable
facts recorded at discovery time, the mutable per-entry review state,
soft scan warnings, deletion outcomes, and the cooperative cancellation
token.
"""

import threading
from dataclasses import dataclass
from enum import Enum


class Sensitivity(str, Enum):
    """Classification of a discovered directory.

    Attributes:
        SAFE: Not matched by any sensitivity rule; pre-selected for deletion.
        SENSITIVE: Possibly managed by an application or the OS; never
            pre-selected.
    """

    SAFE = "safe"
    SENSITIVE = "sensitive"


class EntryStatus(str, Enum):
    """Deletion lifecycle of an entry.

    Attributes:
        PENDING: Not yet part of a deletion pass (initial state).
        DELETING: Removal is in progress.
        DELETED: Removal succeeded (terminal).
        FAILED: Removal failed; the cause is stored on the entry (terminal).
    """

    PENDING = "pending"
    DELETING = "deleting"
    DELETED = "deleted"
    FAILED = "failed"


class ScanWarningKind(str, Enum):
    """Category of a soft scan error."""

    PERMISSION_DENIED = "permission_denied"
    VANISHED = "vanished"
    NOT_A_DIRECTORY = "not_a_directory"
    IO_ERROR = "io_error"


@dataclass(frozen=True, slots=True)
class DiscoveredDirectory:
    """A ``node_modules`` directory as reported by the scanner.

    Everything here is fixed at discovery time and never recomputed.

    Attributes:
        path: Absolute, canonical path of the directory.
        size_bytes: Total size of all regular files below the directory.
        sensitive: Whether the classifier flagged the location.
        last_modified: Modification time in seconds since the epoch,
            None if the metadata could not be read.
    """

    path: str
    size_bytes: int
    sensitive: bool
    last_modified: float | None = None

    def __post_init__(self) -> None:
        """Validate discovered directory data after initialization."""
        if not self.path:
            msg = "Path cannot be empty"
            raise ValueError(msg)
        if self.size_bytes < 0:
            msg = f"Size cannot be negative, got {self.size_bytes}"
            raise ValueError(msg)


@dataclass(slots=True)
class Entry:
    """One discovered directory plus its review and deletion state.

    ``selected`` is only changed by the selection model and is frozen
    once ``status`` leaves PENDING. ``status`` is only changed by the
    deletion executor (and by an explicit retry).

    Attributes:
        discovery: The immutable scanner record.
        selected: Whether the operator has checked the entry for deletion.
        status: Deletion lifecycle state.
        error: Human-readable failure cause when ``status`` is FAILED.
    """

    discovery: DiscoveredDirectory
    selected: bool
    status: EntryStatus = EntryStatus.PENDING
    error: str | None = None

    @classmethod
    def from_discovery(cls, discovery: DiscoveredDirectory) -> "Entry":
        """Create an entry with the default selection.

        Safe entries start checked, sensitive entries start unchecked.
        """
        return cls(discovery=discovery, selected=not discovery.sensitive)

    @property
    def path(self) -> str:
        return self.discovery.path

    @property
    def size_bytes(self) -> int:
        return self.discovery.size_bytes

    @property
    def sensitive(self) -> bool:
        return self.discovery.sensitive

    @property
    def last_modified(self) -> float | None:
        return self.discovery.last_modified

    @property
    def is_pending(self) -> bool:
        """Check if the entry has not entered a deletion pass."""
        return self.status == EntryStatus.PENDING

    @property
    def is_marked(self) -> bool:
        """Check if the entry would be deleted by the next pass."""
        return self.is_pending and self.selected


@dataclass(frozen=True, slots=True)
class ScanWarning:
    """A soft error recorded during traversal.

    Attributes:
        path: Path that could not be read.
        kind: Category of the failure.
        message: Human-readable description.
    """

    path: str
    kind: ScanWarningKind
    message: str


@dataclass(frozen=True, slots=True)
class DeletionOutcome:
    """Result of removing a single entry.

    Attributes:
        path: Absolute path that was operated on.
        success: Whether the directory tree was removed.
        bytes_freed: Recorded size of the entry if removed, else 0.
        error: Failure cause, None on success.
    """

    path: str
    success: bool
    bytes_freed: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        """Check if the removal failed."""
        return not self.success


@dataclass(frozen=True, slots=True)
class DeletionProgress:
    """Progress report emitted after each entry of a deletion pass.

    Attributes:
        done: Number of entries processed so far.
        total: Number of entries in the pass.
        bytes_freed: Bytes reclaimed so far.
        current_path: Path of the entry just processed.
        outcome: Outcome of that entry.
    """

    done: int
    total: int
    bytes_freed: int
    current_path: str
    outcome: DeletionOutcome


class CancelToken:
    """Cooperative cancellation flag for one in-flight operation.

    Workers check :attr:`cancelled` between directories or entries; setting
    the flag never interrupts a system call already in progress.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancellation is requested or the timeout elapses.

        Returns:
            True if cancellation was requested.
        """
        return self._event.wait(timeout)
