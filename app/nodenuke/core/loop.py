"""Interaction loop: the state machine between the core and the display.

The loop owns the selection model, drains the scan session on every
redraw tick, runs deletion passes on a background thread and turns
semantic input events into state transitions. It never touches the
terminal; a :class:`Frontend` draws snapshots and supplies events.
"""

import logging
import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from nodenuke.core.deleter import DeletionExecutor
from nodenuke.core.models import CancelToken, DeletionOutcome, DeletionProgress, Entry
from nodenuke.core.selection import EntryRow, SelectionModel
from nodenuke.core.session import ScanSession

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.08

# Upper bound on waiting for background work when the loop shuts down.
_SHUTDOWN_TIMEOUT = 5.0


class LoopState(str, Enum):
    """Interaction loop states."""

    SCANNING = "scanning"
    REVIEWING = "reviewing"
    CONFIRM_PENDING = "confirm_pending"
    DELETING = "deleting"
    DONE = "done"
    EXITED = "exited"


class InputEvent(str, Enum):
    """Semantic input events accepted by the loop."""

    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    TOGGLE_CURRENT = "toggle_current"
    SELECT_ALL_SAFE = "select_all_safe"
    SELECT_ALL_INCLUDING_SENSITIVE = "select_all_including_sensitive"
    REQUEST_DELETE = "request_delete"
    CONFIRM_YES = "confirm_yes"
    CONFIRM_NO = "confirm_no"
    QUIT = "quit"
    RETRY_CURRENT = "retry_current"
    CANCEL = "cancel"


@dataclass(frozen=True, slots=True)
class ScanProgress:
    """Scan status as seen by the display.

    Attributes:
        complete: Whether the walk has ended (finished or cancelled).
        cancelled: Whether the walk was cancelled.
        current_path: Directory the scanner is visiting.
        entry_count: Entries recorded by the session.
        total_bytes: Sum of recorded entry sizes.
        warning_count: Soft errors encountered so far.
        error: Description of an unexpected scanner failure.
    """

    complete: bool
    cancelled: bool
    current_path: str
    entry_count: int
    total_bytes: int
    warning_count: int
    error: str | None = None


@dataclass(frozen=True, slots=True)
class DeletionView:
    """Progress of the running deletion pass."""

    done: int
    total: int
    bytes_freed: int
    current_path: str
    cancelling: bool


@dataclass(frozen=True, slots=True)
class DeletionSummary:
    """Result of a finished deletion pass.

    Attributes:
        deleted: Entries removed.
        failed: Entries that could not be removed.
        skipped: Entries left pending because the pass was cancelled.
        bytes_freed: Sum of the recorded sizes of removed entries.
        errors: (path, cause) for each failed entry.
        cancelled: Whether the pass was cut short.
    """

    deleted: int
    failed: int
    skipped: int
    bytes_freed: int
    errors: tuple[tuple[str, str], ...]
    cancelled: bool


@dataclass(frozen=True, slots=True)
class ViewSnapshot:
    """Everything a frontend needs to draw one frame."""

    state: LoopState
    root: str
    rows: tuple[EntryRow, ...]
    cursor: int
    scan: ScanProgress
    selected_count: int
    selected_bytes: int
    listed_bytes: int
    sensitive_selected: bool
    deletion: DeletionView | None
    summary: DeletionSummary | None

    @property
    def nothing_found(self) -> bool:
        """Check if the scan finished without a single match."""
        return self.scan.complete and self.scan.entry_count == 0


class Frontend(ABC):
    """Draws snapshots and supplies input events to the loop."""

    @abstractmethod
    def render(self, snapshot: ViewSnapshot) -> None:
        """Draw one frame."""

    @abstractmethod
    def next_event(self, timeout: float) -> InputEvent | None:
        """Wait up to ``timeout`` seconds for the next input event.

        Returns:
            The event, or None if the timeout elapsed without input.
        """


def summarize(outcomes: list[DeletionOutcome], total: int, cancelled: bool) -> DeletionSummary:
    """Build a pass summary from executor outcomes.

    Args:
        outcomes: Outcomes returned by the executor.
        total: Number of entries handed to the executor.
        cancelled: Whether cancellation was requested during the pass.

    Returns:
        The aggregated summary.
    """
    failures = tuple((o.path, o.error or "unknown error") for o in outcomes if o.failed)
    return DeletionSummary(
        deleted=sum(1 for o in outcomes if o.success),
        failed=len(failures),
        skipped=total - len(outcomes),
        bytes_freed=sum(o.bytes_freed for o in outcomes),
        errors=failures,
        cancelled=cancelled and len(outcomes) < total,
    )


class InteractionLoop:
    """State machine driving one interactive clean-up session.

    The loop is single-threaded: :meth:`handle`, :meth:`tick` and
    :meth:`snapshot` must all be called from the same thread. The scan
    producer and the deletion worker only communicate with it through
    queues.

    Args:
        session: Scan session that has been (or will be) started.
        model: Selection model; a fresh one is created if omitted.
        executor: Deletion executor; a default one if omitted.
        sort_by: "size" to sort largest-first once the scan completes,
            "discovery" to keep arrival order.
        tick_interval: Longest wait for input between redraws, in seconds.
        root: Scan root, for display only.
    """

    def __init__(
        self,
        session: ScanSession,
        model: SelectionModel | None = None,
        executor: DeletionExecutor | None = None,
        *,
        sort_by: str = "discovery",
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        root: str = "",
    ) -> None:
        self._session = session
        self._model = model if model is not None else SelectionModel()
        self._executor = executor if executor is not None else DeletionExecutor()
        self._sort_by = sort_by
        self._tick_interval = tick_interval
        self._root = root

        self._state = LoopState.SCANNING
        self._scan_finalized = False

        self._delete_thread: threading.Thread | None = None
        self._delete_token: CancelToken | None = None
        self._delete_queue: queue.Queue[DeletionProgress] = queue.Queue()
        self._delete_total = 0
        self._delete_outcomes: list[DeletionOutcome] = []
        self._last_progress: DeletionProgress | None = None
        self._summary: DeletionSummary | None = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def model(self) -> SelectionModel:
        return self._model

    @property
    def summary(self) -> DeletionSummary | None:
        """Summary of the most recent deletion pass."""
        return self._summary

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def handle(self, event: InputEvent) -> None:
        """Apply one input event.

        Args:
            event: Semantic event from the frontend.
        """
        if self._state == LoopState.EXITED:
            return

        if event == InputEvent.QUIT:
            self._quit()
            return

        if self._state in (LoopState.SCANNING, LoopState.REVIEWING):
            self._handle_reviewing(event)
        elif self._state == LoopState.CONFIRM_PENDING:
            self._handle_confirm(event)
        elif self._state == LoopState.DELETING:
            if event == InputEvent.CANCEL and self._delete_token is not None:
                logger.info("Deletion cancel requested")
                self._delete_token.cancel()
        elif self._state == LoopState.DONE:
            self._leave_done()

    def _handle_reviewing(self, event: InputEvent) -> None:
        model = self._model
        if event == InputEvent.MOVE_UP:
            model.move_cursor(-1)
        elif event == InputEvent.MOVE_DOWN:
            model.move_cursor(1)
        elif event == InputEvent.TOGGLE_CURRENT:
            model.toggle_current()
        elif event == InputEvent.SELECT_ALL_SAFE:
            model.select_all_safe_only()
        elif event == InputEvent.SELECT_ALL_INCLUDING_SENSITIVE:
            model.select_all_including_sensitive()
        elif event == InputEvent.RETRY_CURRENT:
            model.retry_current()
        elif event == InputEvent.REQUEST_DELETE:
            if model.selected_count() > 0:
                self._state = LoopState.CONFIRM_PENDING
            else:
                logger.debug("Delete requested with nothing selected")

    def _handle_confirm(self, event: InputEvent) -> None:
        if event == InputEvent.CONFIRM_YES:
            self._start_deletion()
        else:
            self._state = LoopState.REVIEWING

    def _leave_done(self) -> None:
        if len(self._model) == 0 and self._session.is_complete():
            self._state = LoopState.EXITED
        else:
            self._state = LoopState.REVIEWING

    def _quit(self) -> None:
        if not self._session.is_complete():
            self._session.cancel()
        if self._delete_token is not None and self._state == LoopState.DELETING:
            self._delete_token.cancel()
        logger.debug("Quit from %s", self._state.value)
        self._state = LoopState.EXITED

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def _start_deletion(self) -> None:
        entries = self._model.selected_entries()
        if not entries:
            self._state = LoopState.REVIEWING
            return

        self._delete_token = CancelToken()
        self._delete_queue = queue.Queue()
        self._delete_total = len(entries)
        self._delete_outcomes = []
        self._last_progress = None
        self._summary = None

        logger.info("Deleting %d entries", len(entries))
        self._delete_thread = threading.Thread(
            target=self._run_deletion,
            args=(entries, self._delete_token),
            name="nodenuke-delete",
            daemon=True,
        )
        self._state = LoopState.DELETING
        self._delete_thread.start()

    def _run_deletion(self, entries: list[Entry], token: CancelToken) -> None:
        try:
            self._delete_outcomes = self._executor.delete(
                entries,
                progress_sink=self._delete_queue.put,
                cancel=token,
            )
        except Exception:
            logger.exception("Deletion pass failed")

    def _drain_deletion(self) -> None:
        while True:
            try:
                self._last_progress = self._delete_queue.get_nowait()
            except queue.Empty:
                return

    def _finish_deletion(self) -> None:
        cancelled = self._delete_token is not None and self._delete_token.cancelled
        self._summary = summarize(self._delete_outcomes, self._delete_total, cancelled)
        removed = self._model.remove_deleted()
        logger.info(
            "Deletion pass done: %d deleted, %d failed, %d bytes freed",
            self._summary.deleted,
            self._summary.failed,
            self._summary.bytes_freed,
        )
        logger.debug("Removed %d deleted entries from the view", removed)
        self._delete_thread = None
        self._delete_token = None
        self._state = LoopState.DONE

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Pull new scan results and deletion progress into the model."""
        complete = self._session.is_complete()
        new = self._session.poll()
        if new:
            self._model.extend(new)

        if complete and not self._scan_finalized:
            self._scan_finalized = True
            if self._sort_by == "size":
                self._model.sort_by_size()
            logger.debug("Scan complete with %d entries", len(self._model))

        if self._state == LoopState.SCANNING:
            if len(self._model) > 0:
                self._state = LoopState.REVIEWING
            elif complete:
                self._state = LoopState.DONE
        elif self._state == LoopState.DELETING and self._delete_thread is not None:
            finished = not self._delete_thread.is_alive()
            self._drain_deletion()
            if finished:
                self._finish_deletion()

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> ViewSnapshot:
        """Build an immutable view of the current state."""
        session = self._session
        selection = self._model.snapshot()

        deletion = None
        if self._state == LoopState.DELETING:
            progress = self._last_progress
            deletion = DeletionView(
                done=progress.done if progress else 0,
                total=self._delete_total,
                bytes_freed=progress.bytes_freed if progress else 0,
                current_path=progress.current_path if progress else "",
                cancelling=self._delete_token is not None and self._delete_token.cancelled,
            )

        return ViewSnapshot(
            state=self._state,
            root=self._root,
            rows=selection.rows,
            cursor=selection.cursor,
            scan=ScanProgress(
                complete=session.is_complete(),
                cancelled=session.cancelled,
                current_path=session.current_path,
                entry_count=len(session),
                total_bytes=session.total_bytes,
                warning_count=len(session.warnings()),
                error=session.error,
            ),
            selected_count=self._model.selected_count(),
            selected_bytes=self._model.selected_size(),
            listed_bytes=self._model.total_size(),
            sensitive_selected=self._model.has_sensitive_selection(),
            deletion=deletion,
            summary=self._summary,
        )

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(self, frontend: Frontend) -> DeletionSummary | None:
        """Drive the loop until the operator quits.

        Each iteration pulls updates, draws a frame and waits for input up
        to the tick interval.

        Args:
            frontend: Display and input collaborator.

        Returns:
            Summary of the last deletion pass, if any ran.
        """
        try:
            while self._state != LoopState.EXITED:
                self.tick()
                frontend.render(self.snapshot())
                event = frontend.next_event(self._tick_interval)
                if event is not None:
                    self.handle(event)
        finally:
            self.shutdown()
        return self._summary

    def shutdown(self, timeout: float = _SHUTDOWN_TIMEOUT) -> None:
        """Cancel background work and wait for it to stop.

        A running deletion pass is always joined: cancellation stops it
        between entries, and an rmtree already in progress must finish
        before the summary is built. The scan producer gets ``timeout``.
        """
        if not self._session.is_complete():
            self._session.cancel()
        if self._delete_thread is not None:
            if self._delete_token is not None:
                self._delete_token.cancel()
            self._delete_thread.join()
            self._drain_deletion()
            self._finish_deletion()
        self._session.wait(timeout)
        self._state = LoopState.EXITED
