"""Positioned writes for the page renderers."""

import sys

from blessed import Terminal


def write_at(
    term: Terminal, x: int, y: int, content: str, *, clear: bool = True
) -> None:
    """Draw content at column x, row y.

    Full-width lines (title, footer, log) clear to end of line so a shorter
    frame leaves nothing behind. Panes pass ``clear=False`` because they pad
    their rows and sit beside another pane on the same line.
    """
    prefix = term.move_xy(x, y)
    if clear:
        prefix += term.clear_eol
    sys.stdout.write(prefix + content)


def flush() -> None:
    """Push a finished frame to the terminal."""
    sys.stdout.flush()
