"""Rich-based terminal frontend for the interaction loop."""

from __future__ import annotations

import logging
from types import TracebackType

from rich.console import Console
from rich.live import Live

from nodenuke.core.loop import Frontend, InputEvent, LoopState, ViewSnapshot
from nodenuke.tui.keys import map_key, read_key
from nodenuke.tui.render import build_view
from nodenuke.tui.terminal import TerminalController

logger = logging.getLogger(__name__)


class RichFrontend(Frontend):
    """Draws frames on the alternate screen and reads keys from stdin.

    Use as a context manager: entering switches the terminal to cbreak
    mode and opens the live screen, leaving restores both.

    Args:
        console: Console to draw on.
        stdin_fd: Terminal file descriptor to read keys from.
    """

    def __init__(self, console: Console, stdin_fd: int) -> None:
        self._console = console
        self._stdin_fd = stdin_fd
        self._terminal = TerminalController(stdin_fd)
        self._live = Live(console=console, screen=True, auto_refresh=False, transient=True)
        self._state = LoopState.SCANNING

    def __enter__(self) -> RichFrontend:
        self._terminal.enable()
        try:
            self._live.start()
        except Exception:
            self._terminal.restore()
            raise
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            self._live.stop()
        finally:
            self._terminal.restore()

    def render(self, snapshot: ViewSnapshot) -> None:
        self._state = snapshot.state
        width, height = self._console.size
        self._live.update(build_view(snapshot, width, height), refresh=True)

    def next_event(self, timeout: float) -> InputEvent | None:
        key = read_key(self._stdin_fd, int(timeout * 1000))
        event = map_key(self._state, key)
        if key and event is None:
            logger.debug("Unbound key %r in %s", key, self._state.value)
        return event
