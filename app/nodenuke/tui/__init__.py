"""Terminal frontend for nodenuke.

Owns all drawing and raw key decoding; the core only sees snapshots and
semantic input events.
"""

from nodenuke.tui.frontend import RichFrontend
from nodenuke.tui.keys import KEYMAP, map_key, read_key
from nodenuke.tui.render import build_view
from nodenuke.tui.terminal import TerminalController

__all__ = [
    "KEYMAP",
    "RichFrontend",
    "TerminalController",
    "build_view",
    "map_key",
    "read_key",
]
