"""
Directory listing cache owned by the catalog client.

Directory listings rarely change during a session, so browsing back and forth
reuses them. The cache is injected into SubsonicClient rather than living in
module state, and entries are dropped explicitly with invalidate().
"""

import threading
from typing import Dict, Optional

from loguru import logger

from .models import Directory


class DirectoryCache:
    """Thread-safe map of directory id -> Directory."""

    def __init__(self) -> None:
        self._entries: Dict[str, Directory] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Directory]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, directory: Directory) -> None:
        with self._lock:
            self._entries[key] = directory

    def invalidate(self, key: str) -> bool:
        """Drop one cached directory.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug(f"Directory cache invalidated: {key}")
        return removed

    def invalidate_all(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug(f"Directory cache cleared ({count} entries)")

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
