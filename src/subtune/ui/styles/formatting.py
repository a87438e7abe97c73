"""Formatting helper functions."""

from subtune.domain.catalog import Entity
from subtune.domain.library import Track, get_duration_str
from subtune.domain.playback import StatusLine

STAR_MARKER = "♥"
CURRENT_MARKER = "▶"


def format_time(seconds: float) -> str:
    """
    Format seconds as MM:SS.

    Args:
        seconds: Time in seconds (negative values show as 00:00)

    Returns:
        Formatted time string
    """
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def format_player_status(status: StatusLine) -> str:
    """Status bar text, e.g. ``[50%][01:05/03:30]``."""
    return (
        f"[{int(status.volume)}%]"
        f"[{format_time(status.position)}/{format_time(status.duration)}]"
    )


def queue_row_text(track: Track, starred: bool, current: bool = False) -> str:
    """Queue row: ``title - artist - mm:ss`` with favorite and current markers."""
    text = f"{track.title} - {track.artist} - {get_duration_str(track)}"
    if starred:
        text += f" {STAR_MARKER}"
    prefix = f"{CURRENT_MARKER} " if current else "  "
    return prefix + text


def entity_row_text(entity: Entity, starred: bool) -> str:
    if entity.is_dir:
        return f"[{entity.title}]"
    text = entity.title or entity.path.rsplit("/", 1)[-1]
    if starred:
        text += f" {STAR_MARKER}"
    return text


def truncate(text: str, width: int) -> str:
    """Cut text to width, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width == 1:
        return "…"
    return text[: width - 1] + "…"
