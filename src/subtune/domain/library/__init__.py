"""Library domain - track and playlist models.

This domain handles:
- Immutable Track values handed to the playback queue
- Playlist containers
- Title/artist fallbacks for catalog entries without tags
"""

from .models import (
    Playlist,
    Track,
    get_duration_str,
    make_track,
    song_title,
    string_or,
)

__all__ = [
    "Playlist",
    "Track",
    "get_duration_str",
    "make_track",
    "song_title",
    "string_or",
]
