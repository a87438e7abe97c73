"""
Music library domain models.

Contains data structures for representing playable tracks and playlists.
"""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional


class Track(NamedTuple):
    """Represents one playable item in a queue.

    Tracks are immutable; the queue holds them by value and duplicates by id
    are allowed.
    """
    id: str  # Catalog identifier (unique within a catalog)
    uri: str  # Resolved streamable location handed to the backend
    title: str = ""
    artist: str = ""
    duration: int = 0  # in seconds, 0 if unknown


@dataclass
class Playlist:
    """An ordered sequence of tracks. Insertion order is playback order."""

    id: str
    name: str
    tracks: List[Track] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tracks)


def song_title(title: Optional[str], path: Optional[str]) -> str:
    """Return the title if present, otherwise fall back to the file path.

    A path ending with '/' yields an empty title rather than a directory name.
    """
    if title:
        return title

    if not path or path.endswith("/"):
        return ""

    return path.rsplit("/", 1)[-1]


def string_or(first: Optional[str], second: Optional[str]) -> str:
    """Return the first argument if it isn't empty, otherwise the second."""
    if first:
        return first
    return second or ""


def make_track(
    track_id: str,
    uri: str,
    title: Optional[str] = None,
    path: Optional[str] = None,
    artist: Optional[str] = None,
    parent_name: Optional[str] = None,
    duration: Optional[int] = None,
) -> Track:
    """Build a Track applying the title/artist/duration fallbacks."""
    return Track(
        id=track_id,
        uri=uri,
        title=song_title(title, path),
        artist=string_or(artist, parent_name),
        duration=max(0, int(duration or 0)),
    )


def get_duration_str(track: Track) -> str:
    """Get formatted duration string (MM:SS) for a track."""
    minutes, seconds = divmod(track.duration, 60)
    return f"{minutes:02d}:{seconds:02d}"
