"""Deletion of selected node_modules directories.

Removes entries one by one with partial-failure accounting: a failure on
one entry is recorded against it and never stops the rest of the pass.
Cancellation is honoured between entries.
"""

import errno
import logging
import os
import shutil
from collections.abc import Callable, Sequence

from nodenuke.core.models import (
    CancelToken,
    DeletionOutcome,
    DeletionProgress,
    Entry,
    EntryStatus,
)

logger = logging.getLogger(__name__)

ProgressSink = Callable[[DeletionProgress], None]

_ERRNO_REASONS: dict[int, str] = {
    errno.EACCES: "permission denied",
    errno.EPERM: "operation not permitted",
    errno.ENOENT: "path no longer exists",
    errno.ENOTEMPTY: "directory not empty (files were added during removal)",
    errno.EBUSY: "device or resource busy",
    errno.EROFS: "read-only file system",
}


def describe_error(error: OSError) -> str:
    """Convert an OSError into a short human-readable cause.

    Args:
        error: Error raised while removing a directory tree.

    Returns:
        Description suitable for showing next to the entry.
    """
    reason = _ERRNO_REASONS.get(error.errno or 0)
    if reason is None:
        reason = error.strerror or str(error)
    if error.filename and error.errno != errno.ENOENT:
        return f"{reason}: {error.filename}"
    return reason


class DeletionExecutor:
    """Removes directory trees and reports per-entry outcomes.

    Each entry is attempted at most once per call; a failed entry has to
    be re-armed by the operator and deleted again.
    """

    def delete(
        self,
        entries: Sequence[Entry],
        progress_sink: ProgressSink | None = None,
        cancel: CancelToken | None = None,
    ) -> list[DeletionOutcome]:
        """Delete the given entries in order.

        Entries move PENDING -> DELETING -> DELETED or FAILED. If ``cancel``
        fires, the remaining entries stay PENDING and the outcomes gathered
        so far are returned.

        Args:
            entries: Entries to remove.
            progress_sink: Called after each entry completes.
            cancel: Cooperative cancellation token.

        Returns:
            One outcome per processed entry, in processing order.
        """
        outcomes: list[DeletionOutcome] = []
        total = len(entries)
        freed = 0

        for entry in entries:
            if cancel is not None and cancel.cancelled:
                logger.info(
                    "Deletion cancelled with %d of %d entries left",
                    total - len(outcomes),
                    total,
                )
                break

            entry.status = EntryStatus.DELETING
            outcome = self._delete_single(entry)
            if outcome.success:
                entry.status = EntryStatus.DELETED
                entry.error = None
                freed += outcome.bytes_freed
            else:
                entry.status = EntryStatus.FAILED
                entry.error = outcome.error
            outcomes.append(outcome)

            if progress_sink is not None:
                progress_sink(
                    DeletionProgress(
                        done=len(outcomes),
                        total=total,
                        bytes_freed=freed,
                        current_path=entry.path,
                        outcome=outcome,
                    )
                )

        return outcomes

    def _delete_single(self, entry: Entry) -> DeletionOutcome:
        """Remove one directory tree.

        Returns:
            DeletionOutcome describing success or the failure cause.
        """
        path = entry.path

        if os.path.islink(path):
            logger.warning("Refusing to delete symbolic link %s", path)
            return DeletionOutcome(
                path=path,
                success=False,
                error="refusing to delete a symbolic link",
            )

        if not os.path.lexists(path):
            logger.warning("Cannot delete %s: path no longer exists", path)
            return DeletionOutcome(path=path, success=False, error="path no longer exists")

        try:
            shutil.rmtree(path)
        except OSError as e:
            reason = describe_error(e)
            logger.warning("Failed to delete %s: %s", path, reason)
            return DeletionOutcome(path=path, success=False, error=reason)

        logger.info("Deleted %s (%d bytes)", path, entry.size_bytes)
        return DeletionOutcome(path=path, success=True, bytes_freed=entry.size_bytes)
