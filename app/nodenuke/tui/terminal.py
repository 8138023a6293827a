"""Terminal mode control for the interactive session.

Rich draws the alternate screen; this module only switches the input side
of the terminal into cbreak mode so single keystrokes arrive unbuffered
and unechoed, and restores the saved state afterwards.
"""

from __future__ import annotations

import contextlib
import logging
import termios
import tty
from collections.abc import Iterator

logger = logging.getLogger(__name__)


class TerminalController:
    """Manage the cbreak-mode lifecycle of a terminal file descriptor."""

    def __init__(self, stdin_fd: int) -> None:
        """Capture tty state for the given file descriptor."""
        self.stdin_fd = stdin_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def enable(self) -> None:
        """Enter cbreak mode: no line buffering, no echo, signals kept."""
        tty.setcbreak(self.stdin_fd, termios.TCSANOW)
        self._active = True
        logger.debug("Terminal switched to cbreak mode")

    def restore(self) -> None:
        """Restore the terminal state captured at construction."""
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)
        self._active = False
        logger.debug("Terminal state restored")

    @contextlib.contextmanager
    def cbreak(self) -> Iterator[TerminalController]:
        """Context manager that restores the terminal even on errors."""
        try:
            self.enable()
            yield self
        finally:
            self.restore()
