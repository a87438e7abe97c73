"""
Player state machine for Subtune.

Owns the playlists, the active playlist pointer, the cursor into it and the
replace-in-progress flag, and translates commands into backend commands.
Every public method holds one re-entrant lock so UI commands and event loop
transitions never interleave.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from ..library.models import Playlist, Track
from .backend import BackendEvent, PlaybackBackend
from .exceptions import BackendCommandFailed, IndexOutOfRange

# Volume bounds accepted by the backend
MIN_VOLUME = 0
MAX_VOLUME = 100

# Name of the playlist created when tracks are queued with no active playlist
DEFAULT_QUEUE_NAME = "Queue"


class PlaybackStatus(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"
    ERROR = "error"


@dataclass(frozen=True)
class PlayerSnapshot:
    """Read-only view of the player handed to the presentation layer."""

    status: PlaybackStatus
    error: Optional[str]
    active_index: Optional[int]
    current_index: Optional[int]
    current_track: Optional[Track]
    replace_in_progress: bool
    queue_length: int


def clamp_volume(volume: int) -> int:
    """Clamp volume to the closed range [0, 100]."""
    return max(MIN_VOLUME, min(MAX_VOLUME, volume))


class Player:
    """Playback queue engine.

    Queue operations (append, remove_at, clear) act on the active playlist.
    Backend failures are logged, stored in ``error`` and reported through the
    return value; only invalid indexes raise.
    """

    def __init__(self, backend: PlaybackBackend):
        self.backend = backend
        self.lock = threading.RLock()

        self._playlists: List[Playlist] = []
        self.active_index: Optional[int] = None
        self.current_index: Optional[int] = None
        self.replace_in_progress = False
        self.status = PlaybackStatus.STOPPED
        self.error: Optional[str] = None

    # ---- read access ----

    @property
    def playlists(self) -> List[Playlist]:
        with self.lock:
            return list(self._playlists)

    def active_playlist(self) -> Optional[Playlist]:
        with self.lock:
            if self.active_index is None:
                return None
            return self._playlists[self.active_index]

    def current_track(self) -> Optional[Track]:
        with self.lock:
            tracks = self._tracks()
            if self.current_index is None or self.current_index >= len(tracks):
                return None
            return tracks[self.current_index]

    def queue_rows(self) -> List[Tuple[Track, bool]]:
        """Active playlist in insertion order, flagging the current row."""
        with self.lock:
            return [
                (track, i == self.current_index)
                for i, track in enumerate(self._tracks())
            ]

    def snapshot(self) -> PlayerSnapshot:
        with self.lock:
            return PlayerSnapshot(
                status=self.status,
                error=self.error,
                active_index=self.active_index,
                current_index=self.current_index,
                current_track=self.current_track(),
                replace_in_progress=self.replace_in_progress,
                queue_length=len(self._tracks()),
            )

    def is_actively_playing(self) -> bool:
        """True while a track is playing (not paused) from a non-empty queue."""
        with self.lock:
            return self.status is PlaybackStatus.PLAYING and bool(self._tracks())

    def status_text(self) -> str:
        with self.lock:
            if self.status is PlaybackStatus.PLAYING:
                track = self.current_track()
                return f"playing {track.title}" if track else "playing"
            return self.status.value

    # ---- internal helpers ----

    def _tracks(self) -> List[Track]:
        if self.active_index is None:
            return []
        return self._playlists[self.active_index].tracks

    def _fail(self, operation: str, target: str, error: BackendCommandFailed) -> None:
        logger.error(f"{operation}: {target} -- {error}")
        self.error = str(error)

    def _resume_if_paused(self, operation: str) -> None:
        # mpv keeps its pause flag across stop and loadfile
        try:
            paused = self.backend.get_property("pause")
        except BackendCommandFailed as e:
            self._fail(operation, "get pause", e)
            return
        if not paused:
            return
        try:
            self.backend.toggle_pause()
        except BackendCommandFailed as e:
            self._fail(operation, "resume", e)

    def _load_current(self, operation: str) -> bool:
        """Load the track under the cursor, marking the replace window."""
        track = self._tracks()[self.current_index]
        self._resume_if_paused(operation)

        self.replace_in_progress = True
        try:
            self.backend.load(track.uri)
        except BackendCommandFailed as e:
            self.replace_in_progress = False
            self.status = PlaybackStatus.ERROR
            self._fail(operation, track.id, e)
            return False

        logger.debug(f"{operation}: loading {track.id} (index {self.current_index})")
        self.status = PlaybackStatus.PLAYING
        self.error = None
        return True

    def _stop_backend(self, operation: str) -> bool:
        try:
            self.backend.stop()
        except BackendCommandFailed as e:
            self._fail(operation, "stop", e)
            return False
        return True

    def _set_stopped(self) -> None:
        self.status = PlaybackStatus.STOPPED
        self.replace_in_progress = False

    # ---- playlists ----

    def add_playlist(self, playlist: Playlist) -> int:
        """Append a playlist and return its index. The active playlist is unchanged."""
        with self.lock:
            self._playlists.append(playlist)
            return len(self._playlists) - 1

    def find_playlist(self, playlist_id: str) -> Optional[int]:
        with self.lock:
            for i, playlist in enumerate(self._playlists):
                if playlist_id and playlist.id == playlist_id:
                    return i
            return None

    def add_or_replace_playlist(self, playlist: Playlist) -> int:
        """Store a playlist, replacing one with the same id.

        Replacing the active playlist keeps the cursor only if it is still valid.
        """
        with self.lock:
            index = self.find_playlist(playlist.id)
            if index is None:
                return self.add_playlist(playlist)

            self._playlists[index] = playlist
            if index == self.active_index and self.current_index is not None:
                if self.current_index >= len(playlist.tracks):
                    self.current_index = None
            return index

    def remove_playlist(self, index: int) -> Playlist:
        """Remove a playlist. Removing the active one stops playback."""
        with self.lock:
            if not 0 <= index < len(self._playlists):
                raise IndexOutOfRange(index, len(self._playlists), "playlist")

            if index == self.active_index:
                self._stop_backend("remove_playlist")
                self.active_index = None
                self.current_index = None
                self._set_stopped()
            elif self.active_index is not None and index < self.active_index:
                self.active_index -= 1

            return self._playlists.pop(index)

    def play_playlist(self, index: int, start: int = 0) -> bool:
        """Make a playlist active and play it from track ``start``."""
        with self.lock:
            if not 0 <= index < len(self._playlists):
                raise IndexOutOfRange(index, len(self._playlists), "playlist")

            tracks = self._playlists[index].tracks
            if tracks and not 0 <= start < len(tracks):
                raise IndexOutOfRange(start, len(tracks))

            self.active_index = index
            if not tracks:
                self.current_index = None
                return False

            self.current_index = start
            return self._load_current("play_playlist")

    # ---- queue operations (active playlist) ----

    def _ensure_active(self) -> Playlist:
        if self.active_index is None:
            self._playlists.append(Playlist(id="", name=DEFAULT_QUEUE_NAME))
            self.active_index = len(self._playlists) - 1
        return self._playlists[self.active_index]

    def append(self, track: Track) -> None:
        with self.lock:
            self._ensure_active().tracks.append(track)

    def append_many(self, tracks: Iterable[Track]) -> int:
        with self.lock:
            playlist = self._ensure_active()
            before = len(playlist.tracks)
            playlist.tracks.extend(tracks)
            return len(playlist.tracks) - before

    def remove_at(self, index: int) -> Track:
        """Remove a track from the active playlist.

        Removing the current track moves playback to the track that takes its
        place (wrapping to the start), or stops when the queue becomes empty.
        """
        with self.lock:
            tracks = self._tracks()
            if not 0 <= index < len(tracks):
                raise IndexOutOfRange(index, len(tracks))

            removed = tracks.pop(index)

            if self.current_index is None or index > self.current_index:
                return removed

            if index < self.current_index:
                self.current_index -= 1
                return removed

            if not tracks:
                self.current_index = None
                self._stop_backend("remove_at")
                self._set_stopped()
                return removed

            if self.current_index >= len(tracks):
                self.current_index = 0

            if self.status in (PlaybackStatus.PLAYING, PlaybackStatus.PAUSED):
                self._load_current("remove_at")
            return removed

    def clear(self) -> None:
        """Empty the active playlist and stop playback."""
        with self.lock:
            self._tracks().clear()
            self.current_index = None
            self._stop_backend("clear")
            self._set_stopped()

    # ---- transport commands ----

    def play(self, index: int) -> bool:
        with self.lock:
            tracks = self._tracks()
            if not 0 <= index < len(tracks):
                raise IndexOutOfRange(index, len(tracks))

            self.current_index = index
            return self._load_current("play")

    def next(self) -> bool:
        """Advance to the next track, looping back to the first after the last."""
        with self.lock:
            tracks = self._tracks()
            if not tracks:
                return False

            if self.current_index is None:
                self.current_index = 0
            else:
                self.current_index = (self.current_index + 1) % len(tracks)
            return self._load_current("next")

    def previous(self) -> bool:
        """Go back one track, wrapping from the first to the last."""
        with self.lock:
            tracks = self._tracks()
            if not tracks:
                return False

            if self.current_index is None or self.current_index == 0:
                self.current_index = len(tracks) - 1
            else:
                self.current_index -= 1
            return self._load_current("previous")

    def pause(self) -> PlaybackStatus:
        """Toggle pause and return the resulting status.

        With nothing loaded, starts the current (or first) track of a
        non-empty queue. A backend failure returns ERROR and keeps the
        pre-toggle status.
        """
        with self.lock:
            try:
                idle = self.backend.get_property("idle-active")
                paused = self.backend.get_property("pause")
            except BackendCommandFailed as e:
                self._fail("pause", "get_property", e)
                return PlaybackStatus.ERROR

            if not idle:
                try:
                    self.backend.toggle_pause()
                except BackendCommandFailed as e:
                    self._fail("pause", "cycle pause", e)
                    return PlaybackStatus.ERROR
                self.status = PlaybackStatus.PLAYING if paused else PlaybackStatus.PAUSED
                return self.status

            if not self._tracks():
                self._set_stopped()
                return self.status

            if self.current_index is None:
                self.current_index = 0
            if not self._load_current("pause"):
                return PlaybackStatus.ERROR
            return self.status

    def stop(self) -> bool:
        """Stop playback, keeping the queue and cursor intact."""
        with self.lock:
            if not self._stop_backend("stop"):
                return False
            self._set_stopped()
            return True

    def seek(self, delta_seconds: float) -> bool:
        """Relative seek; the backend clamps out-of-range targets."""
        with self.lock:
            try:
                self.backend.seek(delta_seconds)
            except BackendCommandFailed as e:
                self._fail("seek", str(delta_seconds), e)
                return False
            return True

    def adjust_volume(self, delta: int) -> Optional[int]:
        """Change volume by delta, clamped to [0, 100].

        Returns:
            The volume written, or None when the read or write failed
        """
        with self.lock:
            try:
                volume = self.backend.get_property("volume")
            except BackendCommandFailed as e:
                self._fail("adjust_volume", "get volume", e)
                return None

            if volume is None:
                return None

            new_volume = clamp_volume(int(round(volume)) + delta)
            try:
                self.backend.set_property("volume", new_volume)
            except BackendCommandFailed as e:
                self._fail("adjust_volume", f"set volume {new_volume}", e)
                return None
            return new_volume

    # ---- backend notifications (called from the event loop) ----

    def handle_end_of_file(self, event: BackendEvent) -> bool:
        """React to end-of-file. Returns True if playback state changed.

        Ignored while a replacement load is in flight, or when playback was
        not running (an explicit stop also produces end-of-file).
        Only reason ``eof`` advances: a superseded load ends with ``stop``
        after its successor may already have started.
        """
        with self.lock:
            if self.replace_in_progress:
                return False
            if self.status not in (PlaybackStatus.PLAYING, PlaybackStatus.PAUSED):
                return False

            if event.reason == "error":
                track = self.current_track()
                self.status = PlaybackStatus.ERROR
                self.error = event.raw.get("file_error") or "playback error"
                logger.error(
                    f"handle_end_of_file: {track.id if track else '-'} -- {self.error}"
                )
                return True

            if event.reason != "eof":
                logger.debug(f"handle_end_of_file: ignoring reason {event.reason}")
                return False

            tracks = self._tracks()
            if not tracks:
                self.current_index = None
                self._set_stopped()
                return True

            if self.current_index is None:
                self.current_index = 0
            else:
                self.current_index = (self.current_index + 1) % len(tracks)
            self._load_current("advance")
            return True

    def handle_start_of_file(self) -> Optional[Track]:
        """Close the replace window and return the track now playing."""
        with self.lock:
            self.replace_in_progress = False
            self.status = PlaybackStatus.PLAYING
            self.error = None
            return self.current_track()
