"""Raw key decoding and the key bindings of the interactive view.

Reads bytes from the terminal, normalizes them into key tokens ("UP",
"ENTER", "SPACE", "ESC" or the typed character) and maps tokens to
semantic :class:`InputEvent` values depending on the loop state.
"""

from __future__ import annotations

import os
import select

from nodenuke.core.loop import InputEvent, LoopState

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_REVIEW_KEYS: dict[str, InputEvent] = {
    "UP": InputEvent.MOVE_UP,
    "k": InputEvent.MOVE_UP,
    "DOWN": InputEvent.MOVE_DOWN,
    "j": InputEvent.MOVE_DOWN,
    "SPACE": InputEvent.TOGGLE_CURRENT,
    "a": InputEvent.SELECT_ALL_SAFE,
    "A": InputEvent.SELECT_ALL_INCLUDING_SENSITIVE,
    "ENTER": InputEvent.REQUEST_DELETE,
    "d": InputEvent.REQUEST_DELETE,
    "r": InputEvent.RETRY_CURRENT,
    "q": InputEvent.QUIT,
    "ESC": InputEvent.QUIT,
}

_CONFIRM_KEYS: dict[str, InputEvent] = {
    "y": InputEvent.CONFIRM_YES,
    "Y": InputEvent.CONFIRM_YES,
    "ENTER": InputEvent.CONFIRM_YES,
    "n": InputEvent.CONFIRM_NO,
    "N": InputEvent.CONFIRM_NO,
    "ESC": InputEvent.CONFIRM_NO,
    "q": InputEvent.QUIT,
}

_DELETING_KEYS: dict[str, InputEvent] = {
    "c": InputEvent.CANCEL,
    "ESC": InputEvent.CANCEL,
    "q": InputEvent.QUIT,
}

_DONE_KEYS: dict[str, InputEvent] = {
    "q": InputEvent.QUIT,
    "ESC": InputEvent.QUIT,
}

KEYMAP: dict[LoopState, dict[str, InputEvent]] = {
    LoopState.SCANNING: _REVIEW_KEYS,
    LoopState.REVIEWING: _REVIEW_KEYS,
    LoopState.CONFIRM_PENDING: _CONFIRM_KEYS,
    LoopState.DELETING: _DELETING_KEYS,
    LoopState.DONE: _DONE_KEYS,
}

# States where an unbound key still means something.
_FALLBACK_EVENTS: dict[LoopState, InputEvent] = {
    # Anything but an explicit yes declines the confirmation.
    LoopState.CONFIRM_PENDING: InputEvent.CONFIRM_NO,
    # Any key dismisses the summary.
    LoopState.DONE: InputEvent.CONFIRM_NO,
}


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key from a terminal file descriptor.

    Args:
        fd: File descriptor in cbreak or raw mode.
        timeout_ms: Longest wait for input; None blocks.

    Returns:
        A key token, or "" if the timeout elapsed.
    """
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""
        ch = os.read(fd, 1)
        if not ch:
            return ""

    if ch in {b"\r", b"\n"}:
        return "ENTER"
    if ch == b" ":
        return "SPACE"
    if ch != b"\x1b":
        return ch.decode("utf-8", errors="replace")

    # Escape / arrow key sequences.
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq not in {b"[", b"O"}:
        _PENDING_BYTES.append(seq)
        return "ESC"
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq == b"A":
        return "UP"
    if seq == b"B":
        return "DOWN"
    if seq == b"C":
        return "RIGHT"
    if seq == b"D":
        return "LEFT"
    return "ESC"


def map_key(state: LoopState, key: str) -> InputEvent | None:
    """Translate a key token into an input event for the given state.

    Args:
        state: Current loop state.
        key: Token returned by :func:`read_key`.

    Returns:
        The bound event, or None if the key means nothing in this state.
    """
    if not key:
        return None
    event = KEYMAP.get(state, {}).get(key)
    if event is not None:
        return event
    return _FALLBACK_EVENTS.get(state)
