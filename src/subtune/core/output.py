"""
Unified output system using Loguru.

Logs go to a rotating file. While the blessed UI runs, an extra sink feeds the
Log page; when it exits the sink is removed again.
"""

import threading
from collections import deque
from pathlib import Path
from typing import Callable, Deque, List, Optional, Tuple

from loguru import logger

# Lines kept for the Log page
UI_LOG_LINES = 200

_ui_sink_id: Optional[int] = None
_ui_lines: Deque[Tuple[str, str]] = deque(maxlen=UI_LOG_LINES)
_ui_lock = threading.Lock()

# Map log level to color (blessed attribute names)
LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "white",
    "SUCCESS": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red",
}


def setup_loguru(log_file: Path, level: str = "INFO") -> None:
    """
    Configure loguru for file-only logging (blessed UI handles console display).

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,  # Keep 5 backup files
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def attach_ui_sink(
    on_line: Optional[Callable[[str, str], None]] = None, level: str = "INFO"
) -> None:
    """
    Route log records to the Log page.

    Args:
        on_line: Called with (message, color) for every record, from the
            logging thread. Must be thread-safe.
        level: Minimum level shown in the UI
    """
    global _ui_sink_id

    def sink(message) -> None:
        record = message.record
        line = f"{record['time']:HH:mm:ss} {record['level'].name}: {record['message']}"
        color = LEVEL_COLORS.get(record["level"].name, "white")
        with _ui_lock:
            _ui_lines.append((line, color))
        if on_line:
            on_line(line, color)

    detach_ui_sink()
    _ui_sink_id = logger.add(sink, level=level, format="{message}")


def detach_ui_sink() -> None:
    global _ui_sink_id
    if _ui_sink_id is not None:
        logger.remove(_ui_sink_id)
        _ui_sink_id = None


def get_ui_lines() -> List[Tuple[str, str]]:
    """Snapshot of the (line, color) pairs collected for the Log page."""
    with _ui_lock:
        return list(_ui_lines)
