"""Scan session: the append-only result set of one traversal run.

The session owns the cancellation token for the scan, runs the scanner on
a background producer thread, and publishes every recorded entry to a
bounded queue that the interaction loop drains on each redraw tick.
"""

import logging
import queue
import threading
from collections.abc import Iterator
from pathlib import Path

from nodenuke.core.models import CancelToken, DiscoveredDirectory, ScanWarning
from nodenuke.core.scanner import DirectoryScanner

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256

# Back-off while the consumer has not made room in the queue.
_FULL_QUEUE_BACKOFF_SECONDS = 0.05


class ScanSession:
    """Thread-safe accumulator for one scan run.

    Entries are appended in discovery order and never removed or
    reordered. Once the scan finishes or is cancelled the session is
    frozen: :meth:`record` refuses further entries.

    The single lock guards the entry list, the byte counter and the queue
    hand-off. It is never held while waiting, so readers on the
    interaction thread cannot deadlock against a blocked producer.

    Args:
        queue_size: Capacity of the hand-off queue to the consumer.
    """

    def __init__(self, *, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._lock = threading.Lock()
        self._entries: list[DiscoveredDirectory] = []
        self._paths: set[str] = set()
        self._warnings: list[ScanWarning] = []
        self._total_bytes = 0
        self._queue: queue.Queue[DiscoveredDirectory] = queue.Queue(maxsize=max(1, queue_size))
        self._token = CancelToken()
        self._finished = threading.Event()
        self._scanner: DirectoryScanner | None = None
        self._thread: threading.Thread | None = None
        self._error: str | None = None

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def start(self, scanner: DirectoryScanner, root: str | Path) -> None:
        """Run ``scanner`` over ``root`` on a background thread.

        The root is validated synchronously, so a fatal root error is raised
        here rather than on the producer thread.

        Args:
            scanner: Scanner to drive. Its warnings should be routed to
                :meth:`add_warning`.
            root: Directory to scan.

        Raises:
            RuntimeError: If the session was already started.
            ScanRootError: If the root cannot be scanned.
        """
        if self._thread is not None:
            msg = "Scan session already started"
            raise RuntimeError(msg)

        matches = scanner.scan(root, self._token)
        self._scanner = scanner
        self._thread = threading.Thread(
            target=self._produce,
            args=(matches,),
            name="nodenuke-scan-producer",
            daemon=True,
        )
        self._thread.start()

    def _produce(self, matches: Iterator[DiscoveredDirectory]) -> None:
        try:
            for discovered in matches:
                if not self.record(discovered) and self._token.cancelled:
                    break
        except Exception:
            logger.exception("Scanner failed")
            with self._lock:
                self._error = "Scanner failed unexpectedly; results are incomplete"
        finally:
            close = getattr(matches, "close", None)
            if close is not None:
                close()
            self.finish()

    def record(self, entry: DiscoveredDirectory) -> bool:
        """Append an entry and publish it to the consumer.

        Waits (without holding the lock) while the hand-off queue is full.

        Args:
            entry: Newly discovered directory.

        Returns:
            True if the entry was recorded; False if the session is frozen
            or the path was already recorded.
        """
        while True:
            with self._lock:
                if self._finished.is_set() or self._token.cancelled:
                    return False
                if entry.path in self._paths:
                    logger.debug("Ignoring duplicate entry %s", entry.path)
                    return False
                try:
                    self._queue.put_nowait(entry)
                except queue.Full:
                    pass
                else:
                    self._paths.add(entry.path)
                    self._entries.append(entry)
                    self._total_bytes += entry.size_bytes
                    return True
            self._token.wait(_FULL_QUEUE_BACKOFF_SECONDS)

    def add_warning(self, warning: ScanWarning) -> None:
        """Record a soft scan error. Safe to call from worker threads."""
        with self._lock:
            self._warnings.append(warning)

    def finish(self) -> None:
        """Mark the walk as finished; no further entries are accepted."""
        with self._lock:
            already = self._finished.is_set()
            self._finished.set()
        if not already:
            logger.debug("Scan session finished with %d entries", len(self._entries))

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Request cancellation of the scan.

        Entries already recorded stay; nothing is rolled back.
        """
        with self._lock:
            if self._token.cancelled:
                return
            self._token.cancel()
            count = len(self._entries)
        logger.info("Scan cancelled after %d entries", count)

    def poll(self) -> list[DiscoveredDirectory]:
        """Drain newly published entries without blocking.

        Returns:
            Entries recorded since the previous call, in discovery order.
        """
        drained: list[DiscoveredDirectory] = []
        while True:
            try:
                drained.append(self._queue.get_nowait())
            except queue.Empty:
                return drained

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the producer thread finishes.

        Returns:
            True if the scan is complete.
        """
        if self._thread is not None:
            self._thread.join(timeout)
        return self.is_complete()

    def is_complete(self) -> bool:
        """Check if the scan has finished or been cancelled."""
        return self._finished.is_set() or self._token.cancelled

    @property
    def token(self) -> CancelToken:
        return self._token

    @property
    def cancelled(self) -> bool:
        return self._token.cancelled

    @property
    def error(self) -> str | None:
        """Description of an unexpected scanner failure, if any."""
        return self._error

    @property
    def total_bytes(self) -> int:
        with self._lock:
            return self._total_bytes

    @property
    def current_path(self) -> str:
        """Directory the scanner is visiting, empty when not started."""
        if self._scanner is None:
            return ""
        return self._scanner.current_path

    def entries(self) -> list[DiscoveredDirectory]:
        """Snapshot of all recorded entries in discovery order."""
        with self._lock:
            return list(self._entries)

    def warnings(self) -> list[ScanWarning]:
        """Snapshot of all soft scan errors."""
        with self._lock:
            return list(self._warnings)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
