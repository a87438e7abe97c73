"""Rich console for output that happens outside the blessed screen.

Startup failures and headless mode are the only places Subtune prints
directly; everything else goes to loguru.
"""

from rich.console import Console

_console: Console | None = None


def get_console() -> Console:
    """Shared Rich Console, created on first use."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print a line, styled when ``style`` is given (e.g. "bold red").

    Must not be called while the blessed UI owns the terminal.
    """
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)
