"""Application context for explicit state passing.

Bundles the long-lived services built at startup so the UI and headless
mode receive them as one object instead of reaching for module globals.
"""

import queue
from dataclasses import dataclass, field
from typing import Any, List

from subtune.core.config import Config
from subtune.domain.catalog import Index, RemotePlaylist, SubsonicClient
from subtune.domain.playback import (
    EventLoop,
    Favorites,
    MpvBackend,
    Player,
    ScrobbleScheduler,
)


@dataclass
class AppContext:
    """Services shared by every presentation mode.

    Attributes:
        config: Application configuration
        catalog: Subsonic client (owns the directory cache)
        backend: Running mpv backend
        player: Queue engine; all commands go through it
        favorites: Starred track set
        event_loop: Consumer of backend events and scrobble ticks
        inbox: Queue feeding the event loop
        indexes: Artist index fetched at startup
        remote_playlists: Server playlists fetched at startup
    """

    config: Config
    catalog: SubsonicClient
    backend: MpvBackend
    player: Player
    favorites: Favorites
    scheduler: ScrobbleScheduler
    event_loop: EventLoop
    inbox: "queue.Queue[Any]"
    indexes: List[Index] = field(default_factory=list)
    remote_playlists: List[RemotePlaylist] = field(default_factory=list)

    def shutdown(self) -> None:
        """Stop the event loop, then mpv. Safe to call more than once."""
        self.event_loop.stop()
        self.backend.terminate()
