"""Playback domain - audio backend and queue engine.

This domain handles:
- mpv process management and JSON IPC
- Player state machine over playlists and a cursor
- Event loop for backend events and scrobble timers
- Starred track set
"""

from .backend import BackendEvent, EventKind, PlaybackBackend, event_from_mpv
from .events import EventLoop, StatusLine
from .exceptions import (
    BackendCommandFailed,
    BackendStartError,
    IndexOutOfRange,
    PlaybackError,
)
from .favorites import Favorites
from .mpv import MpvBackend, check_mpv_available
from .player import PlaybackStatus, Player, PlayerSnapshot
from .scrobble import ScrobbleScheduler, ScrobbleTick, scrobble_delay

__all__ = [
    "BackendCommandFailed",
    "BackendEvent",
    "BackendStartError",
    "EventKind",
    "EventLoop",
    "Favorites",
    "IndexOutOfRange",
    "MpvBackend",
    "PlaybackBackend",
    "PlaybackError",
    "PlaybackStatus",
    "Player",
    "PlayerSnapshot",
    "ScrobbleScheduler",
    "ScrobbleTick",
    "StatusLine",
    "check_mpv_available",
    "event_from_mpv",
    "scrobble_delay",
]
