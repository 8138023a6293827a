"""Concurrent scanner for node_modules directories.

Walks a root directory on a bounded thread pool, stops descending at every
directory named ``node_modules``, measures each match and yields it as a
:class:`DiscoveredDirectory` as soon as its size is known. Directory
listing and size computation for different candidates run concurrently.

Symbolic links are never followed, neither while walking nor while
measuring, so link cycles cannot occur and nothing is counted twice.
Unreadable or vanished directories are skipped and reported as soft
warnings; only an invalid scan root is fatal.
"""

import logging
import os
import threading
from collections.abc import Callable, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path

from nodenuke.core.classifier import ClassifierContext, is_sensitive
from nodenuke.core.models import CancelToken, DiscoveredDirectory, ScanWarning, ScanWarningKind

logger = logging.getLogger(__name__)

TARGET_NAME = "node_modules"

DEFAULT_MAX_WORKERS = 8

# How long the coordinator waits for a task before re-checking cancellation.
_POLL_SECONDS = 0.05

_LIST = "list"
_MEASURE = "measure"

WarningCallback = Callable[[ScanWarning], None]


class ScanRootError(Exception):
    """Raised when the scan root is missing, not a directory, or unreadable."""


def validate_root(root: str | Path) -> Path:
    """Resolve and check the scan root.

    Args:
        root: Directory to scan. ``~`` is expanded.

    Returns:
        The canonical absolute root path.

    Raises:
        ScanRootError: If the root cannot be scanned.
    """
    path = Path(root).expanduser()
    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as e:
        raise ScanRootError(f"Scan root does not exist: {path}") from e
    except (OSError, RuntimeError) as e:
        raise ScanRootError(f"Cannot resolve scan root {path}: {e}") from e

    if not resolved.is_dir():
        raise ScanRootError(f"Scan root is not a directory: {resolved}")

    try:
        with os.scandir(resolved):
            pass
    except PermissionError as e:
        raise ScanRootError(f"Permission denied reading scan root: {resolved}") from e
    except OSError as e:
        raise ScanRootError(f"Cannot read scan root {resolved}: {e}") from e

    return resolved


def _warning_for(path: str, error: OSError) -> ScanWarning:
    """Convert an OSError into a soft scan warning."""
    if isinstance(error, PermissionError):
        kind = ScanWarningKind.PERMISSION_DENIED
    elif isinstance(error, FileNotFoundError):
        kind = ScanWarningKind.VANISHED
    elif isinstance(error, NotADirectoryError):
        kind = ScanWarningKind.NOT_A_DIRECTORY
    else:
        kind = ScanWarningKind.IO_ERROR
    return ScanWarning(path=path, kind=kind, message=error.strerror or str(error))


def directory_size(
    path: str,
    cancel: CancelToken | None = None,
    on_error: Callable[[str, OSError], None] | None = None,
) -> int:
    """Sum the sizes of all regular files below a directory.

    Symbolic links are neither followed nor counted. Unreadable
    subdirectories are skipped. Cancellation is checked between
    directories, so the returned total may be partial if it fires.

    Args:
        path: Directory to measure.
        cancel: Optional cancellation token.
        on_error: Called with (path, error) for each unreadable entry.

    Returns:
        Total size in bytes.
    """
    total = 0
    stack = [path]
    while stack:
        if cancel is not None and cancel.cancelled:
            break
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                        elif entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                    except OSError as e:
                        if on_error is not None:
                            on_error(entry.path, e)
        except OSError as e:
            if on_error is not None:
                on_error(current, e)
    return total


class DirectoryScanner:
    """Finds and measures node_modules directories below a root.

    A scanner instance may run several scans in sequence, but not in
    parallel: :attr:`current_path` and :attr:`dirs_visited` describe the
    most recent scan.

    Args:
        max_workers: Upper bound on concurrent listing/measuring tasks,
            which also bounds the number of open directory handles.
        context: Classifier context; defaults to the process environment.
        on_warning: Called from worker threads for every soft error.
    """

    def __init__(
        self,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        context: ClassifierContext | None = None,
        on_warning: WarningCallback | None = None,
    ) -> None:
        self._max_workers = max(1, max_workers)
        self._context = context
        self._on_warning = on_warning
        self._stats_lock = threading.Lock()
        self._current_path = ""
        self._dirs_visited = 0

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def current_path(self) -> str:
        """Directory most recently opened by the walk."""
        return self._current_path

    @property
    def dirs_visited(self) -> int:
        """Number of directories listed so far."""
        return self._dirs_visited

    def scan(
        self,
        root: str | Path,
        cancel: CancelToken | None = None,
    ) -> Iterator[DiscoveredDirectory]:
        """Start scanning a root and return a lazy stream of matches.

        The root is validated immediately; the walk itself starts when the
        returned iterator is first advanced. Matches arrive in completion
        order, which is not deterministic between runs. Once ``cancel``
        fires no further matches are yielded.

        Args:
            root: Directory to scan.
            cancel: Cooperative cancellation token.

        Returns:
            Iterator of discovered directories.

        Raises:
            ScanRootError: If the root cannot be scanned.
        """
        root_path = validate_root(root)
        token = cancel if cancel is not None else CancelToken()
        with self._stats_lock:
            self._current_path = str(root_path)
            self._dirs_visited = 0
        logger.info("Scanning %s with %d workers", root_path, self._max_workers)
        return self._walk(root_path, token)

    def _walk(self, root: Path, cancel: CancelToken) -> Iterator[DiscoveredDirectory]:
        executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="nodenuke-scan",
        )
        in_flight: dict[Future, str] = {}
        found = 0

        try:
            if root.name == TARGET_NAME:
                in_flight[executor.submit(self._measure, str(root), cancel)] = _MEASURE
            else:
                in_flight[executor.submit(self._list_directory, str(root), cancel)] = _LIST

            while in_flight and not cancel.cancelled:
                done, _ = wait(in_flight, timeout=_POLL_SECONDS, return_when=FIRST_COMPLETED)
                for future in done:
                    kind = in_flight.pop(future)
                    if kind == _LIST:
                        subdirs, matches = future.result()
                        for match in matches:
                            in_flight[executor.submit(self._measure, match, cancel)] = _MEASURE
                        for subdir in subdirs:
                            in_flight[executor.submit(self._list_directory, subdir, cancel)] = _LIST
                        continue

                    discovered = future.result()
                    if discovered is None or cancel.cancelled:
                        continue
                    found += 1
                    yield discovered
        finally:
            for future in in_flight:
                future.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
            if cancel.cancelled:
                logger.info("Scan of %s cancelled after %d matches", root, found)
            else:
                logger.info(
                    "Scan of %s finished: %d matches, %d directories",
                    root,
                    found,
                    self._dirs_visited,
                )

    def _list_directory(self, path: str, cancel: CancelToken) -> tuple[list[str], list[str]]:
        """List one directory, splitting children into subdirectories and matches.

        Returns:
            Tuple of (subdirectories to walk, node_modules matches).
        """
        subdirs: list[str] = []
        matches: list[str] = []
        if cancel.cancelled:
            return subdirs, matches

        with self._stats_lock:
            self._current_path = path
            self._dirs_visited += 1

        try:
            with os.scandir(path) as it:
                for entry in it:
                    try:
                        if not entry.is_dir(follow_symlinks=False):
                            continue
                    except OSError as e:
                        self._warn(entry.path, e)
                        continue
                    if entry.name == TARGET_NAME:
                        matches.append(entry.path)
                    else:
                        subdirs.append(entry.path)
        except OSError as e:
            self._warn(path, e)

        return subdirs, matches

    def _measure(self, path: str, cancel: CancelToken) -> DiscoveredDirectory | None:
        """Measure and classify one match.

        Returns:
            The discovered directory, or None if cancelled or vanished.
        """
        if cancel.cancelled:
            return None

        size = directory_size(path, cancel, on_error=self._warn)
        if cancel.cancelled:
            return None

        try:
            last_modified: float | None = os.lstat(path).st_mtime
        except FileNotFoundError as e:
            self._warn(path, e)
            return None
        except OSError:
            last_modified = None

        return DiscoveredDirectory(
            path=path,
            size_bytes=size,
            sensitive=is_sensitive(path, self._context),
            last_modified=last_modified,
        )

    def _warn(self, path: str, error: OSError) -> None:
        warning = _warning_for(path, error)
        logger.warning("Skipping %s: %s", path, warning.message)
        if self._on_warning is not None:
            self._on_warning(warning)
