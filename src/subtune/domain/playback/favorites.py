"""
Starred tracks.

The local set is updated optimistically: a toggle always flips it, even when
the server call fails. load() pulls the server's starred list and is the only
reconciliation pass.
"""

import threading
from typing import Callable, List, Set

from loguru import logger

from ..catalog.client import CatalogService
from ..catalog.exceptions import RemoteCallFailed


class Favorites:
    def __init__(self, catalog: CatalogService):
        self.catalog = catalog
        self._ids: Set[str] = set()
        self._lock = threading.Lock()
        self._subscribers: List[Callable[[str, bool], None]] = []

    def contains(self, track_id: str) -> bool:
        with self._lock:
            return track_id in self._ids

    def ids(self) -> Set[str]:
        with self._lock:
            return set(self._ids)

    def subscribe(self, callback: Callable[[str, bool], None]) -> None:
        """Register callback(track_id, starred) for membership changes."""
        self._subscribers.append(callback)

    def _notify(self, track_id: str, starred: bool) -> None:
        for callback in self._subscribers:
            callback(track_id, starred)

    def toggle(self, track_id: str) -> bool:
        """Flip the star on a track. Returns the new local membership."""
        with self._lock:
            starred = track_id not in self._ids

        try:
            self.catalog.set_starred(track_id, starred)
        except RemoteCallFailed as e:
            logger.error(f"toggle_star: {track_id} -- {e}")

        with self._lock:
            if starred:
                self._ids.add(track_id)
            else:
                self._ids.discard(track_id)

        self._notify(track_id, starred)
        return starred

    def load(self) -> int:
        """Replace the local set with the server's starred songs.

        Returns:
            Number of starred songs

        Raises:
            RemoteCallFailed: the starred list could not be fetched
        """
        entities = self.catalog.get_starred()
        with self._lock:
            self._ids = {e.id for e in entities if not e.is_dir}
            count = len(self._ids)
        logger.info(f"Loaded {count} starred songs")
        return count
