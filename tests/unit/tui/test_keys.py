"""Unit tests for raw key decoding and key bindings."""

import os
from collections.abc import Iterator

import pytest
from nodenuke.core.loop import InputEvent, LoopState
from nodenuke.tui.keys import map_key, read_key


@pytest.fixture
def pipe() -> Iterator[tuple[int, int]]:
    """A pipe standing in for the terminal."""
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    os.close(read_fd)
    os.close(write_fd)


class TestReadKey:
    """Tests for read_key."""

    @pytest.mark.parametrize(
        "raw,token",
        [
            (b"\x1b[A", "UP"),
            (b"\x1b[B", "DOWN"),
            (b"\x1bOA", "UP"),
            (b"\r", "ENTER"),
            (b"\n", "ENTER"),
            (b" ", "SPACE"),
            (b"A", "A"),
            (b"q", "q"),
        ],
    )
    def test_tokens(self, pipe: tuple[int, int], raw: bytes, token: str) -> None:
        """Raw bytes decode into normalized tokens."""
        read_fd, write_fd = pipe
        os.write(write_fd, raw)
        assert read_key(read_fd, 100) == token

    def test_lone_escape(self, pipe: tuple[int, int]) -> None:
        """ESC with nothing after it is the escape key."""
        read_fd, write_fd = pipe
        os.write(write_fd, b"\x1b")
        assert read_key(read_fd, 100) == "ESC"

    def test_escape_then_key(self, pipe: tuple[int, int]) -> None:
        """A key pressed right after ESC is not lost."""
        read_fd, write_fd = pipe
        os.write(write_fd, b"\x1bq")
        assert read_key(read_fd, 100) == "ESC"
        assert read_key(read_fd, 100) == "q"

    def test_timeout(self, pipe: tuple[int, int]) -> None:
        """No input within the timeout yields an empty token."""
        read_fd, _ = pipe
        assert read_key(read_fd, 10) == ""


class TestMapKey:
    """Tests for map_key."""

    @pytest.mark.parametrize(
        "key,event",
        [
            ("UP", InputEvent.MOVE_UP),
            ("k", InputEvent.MOVE_UP),
            ("DOWN", InputEvent.MOVE_DOWN),
            ("j", InputEvent.MOVE_DOWN),
            ("SPACE", InputEvent.TOGGLE_CURRENT),
            ("a", InputEvent.SELECT_ALL_SAFE),
            ("A", InputEvent.SELECT_ALL_INCLUDING_SENSITIVE),
            ("ENTER", InputEvent.REQUEST_DELETE),
            ("d", InputEvent.REQUEST_DELETE),
            ("r", InputEvent.RETRY_CURRENT),
            ("q", InputEvent.QUIT),
            ("ESC", InputEvent.QUIT),
        ],
    )
    def test_review_bindings(self, key: str, event: InputEvent) -> None:
        """Reviewing keys map to list operations."""
        assert map_key(LoopState.REVIEWING, key) == event

    def test_unbound_review_key(self) -> None:
        """Unbound keys do nothing in the list."""
        assert map_key(LoopState.REVIEWING, "z") is None

    def test_confirm_bindings(self) -> None:
        """Only y or enter confirm; anything else declines."""
        assert map_key(LoopState.CONFIRM_PENDING, "y") == InputEvent.CONFIRM_YES
        assert map_key(LoopState.CONFIRM_PENDING, "ENTER") == InputEvent.CONFIRM_YES
        assert map_key(LoopState.CONFIRM_PENDING, "n") == InputEvent.CONFIRM_NO
        assert map_key(LoopState.CONFIRM_PENDING, "x") == InputEvent.CONFIRM_NO

    def test_deleting_bindings(self) -> None:
        """Only cancel and quit are live while deleting."""
        assert map_key(LoopState.DELETING, "c") == InputEvent.CANCEL
        assert map_key(LoopState.DELETING, "q") == InputEvent.QUIT
        assert map_key(LoopState.DELETING, "SPACE") is None

    def test_done_any_key(self) -> None:
        """Any key dismisses the summary, q quits."""
        assert map_key(LoopState.DONE, "x") == InputEvent.CONFIRM_NO
        assert map_key(LoopState.DONE, "q") == InputEvent.QUIT

    def test_empty_token(self) -> None:
        """A timeout is never an event."""
        assert map_key(LoopState.DONE, "") is None
