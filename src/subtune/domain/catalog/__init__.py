"""Catalog domain - remote Subsonic server access.

This domain handles:
- Subsonic REST calls (browse, playlists, stars, scrobbles, streams)
- Directory listing cache with explicit invalidation
- Conversion of catalog entities into playable tracks
"""

from .cache import DirectoryCache
from .client import (
    CatalogService,
    SubsonicClient,
    entity_to_track,
    resolve_playlist,
)
from .exceptions import CatalogError, RemoteCallFailed
from .models import Artist, Directory, Entity, Index, RemotePlaylist

__all__ = [
    "Artist",
    "CatalogError",
    "CatalogService",
    "Directory",
    "DirectoryCache",
    "Entity",
    "Index",
    "RemoteCallFailed",
    "RemotePlaylist",
    "SubsonicClient",
    "entity_to_track",
    "resolve_playlist",
]
