"""Helpers for the blessed UI."""

from .scrolling import calculate_scroll_offset, clamp_selection, move_selection
from .terminal import flush, write_at

__all__ = [
    "calculate_scroll_offset",
    "clamp_selection",
    "flush",
    "move_selection",
    "write_at",
]
