"""Shared fakes for playback and catalog tests."""

import queue
from typing import Any, Dict, List, Optional, Set

import pytest

from subtune.domain.catalog import DirectoryCache, Entity, RemoteCallFailed
from subtune.domain.library import Track
from subtune.domain.playback import BackendCommandFailed


class FakeBackend:
    """In-memory PlaybackBackend that records every command."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.fail: Set[str] = set()  # Command names that raise
        self.fail_properties: Set[str] = set()  # Property reads that raise
        self.properties: Dict[str, Any] = {
            "idle-active": True,
            "pause": False,
            "volume": 50,
            "time-pos": 0.0,
            "duration": 0.0,
        }
        self.loaded: Optional[str] = None

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name,) + args)
        if name in self.fail:
            raise BackendCommandFailed(name, "simulated failure")

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def load(self, uri: str) -> None:
        self._call("load", uri)
        self.loaded = uri
        self.properties["idle-active"] = False

    def stop(self) -> None:
        self._call("stop")
        self.loaded = None
        self.properties["idle-active"] = True

    def toggle_pause(self) -> None:
        self._call("toggle_pause")
        self.properties["pause"] = not self.properties["pause"]

    def seek(self, delta_seconds: float) -> None:
        self._call("seek", delta_seconds)

    def get_property(self, name: str) -> Any:
        self._call("get_property", name)
        if name in self.fail_properties:
            raise BackendCommandFailed(f"get_property {name}", "property unavailable")
        return self.properties.get(name)

    def set_property(self, name: str, value: Any) -> None:
        self._call("set_property", name, value)
        self.properties[name] = value

    def observe_property(self, name: str) -> None:
        self._call("observe_property", name)

    def terminate(self) -> None:
        self._call("terminate")


class FakeCatalog:
    """CatalogService double with canned replies and recorded submissions."""

    def __init__(self) -> None:
        self.cache = DirectoryCache()
        self.fail: Set[str] = set()
        self.starred: List[Entity] = []
        self.star_calls: List[tuple] = []
        self.now_playing: List[str] = []
        self.scrobbles: List[str] = []
        self.directories: Dict[str, Any] = {}
        self.playlists: List[Any] = []
        self.playlist_details: Dict[str, Any] = {}
        self.random_songs: List[Entity] = []
        self.added: List[tuple] = []
        self.created: List[str] = []
        self.deleted: List[str] = []
        self.indexes: List[Any] = []

    def _check(self, endpoint: str) -> None:
        if endpoint in self.fail:
            raise RemoteCallFailed(endpoint, "server unreachable")

    def stream_url(self, song_id: str) -> str:
        return f"http://music.test/rest/stream?id={song_id}"

    def get_indexes(self):
        self._check("getIndexes")
        return self.indexes

    def get_music_directory(self, directory_id: str):
        self._check("getMusicDirectory")
        return self.directories[directory_id]

    def get_playlists(self):
        self._check("getPlaylists")
        return list(self.playlists)

    def get_playlist(self, playlist_id: str):
        self._check("getPlaylist")
        return self.playlist_details[playlist_id]

    def create_playlist(self, name: str):
        self._check("createPlaylist")
        self.created.append(name)

    def delete_playlist(self, playlist_id: str) -> None:
        self._check("deletePlaylist")
        self.deleted.append(playlist_id)

    def add_to_playlist(self, playlist_id: str, song_id: str) -> None:
        self._check("updatePlaylist")
        self.added.append((playlist_id, song_id))

    def get_random_songs(self, size: int = 50):
        self._check("getRandomSongs")
        return self.random_songs[:size]

    def get_starred(self):
        self._check("getStarred")
        return list(self.starred)

    def set_starred(self, item_id: str, starred: bool) -> None:
        self.star_calls.append((item_id, starred))
        self._check("star")

    def submit_now_playing(self, song_id: str) -> None:
        self._check("nowPlaying")
        self.now_playing.append(song_id)

    def submit_scrobble(self, song_id: str) -> None:
        self._check("scrobble")
        self.scrobbles.append(song_id)


class FakeTimer:
    """Stands in for threading.Timer; fires only when told to."""

    def __init__(self, interval, function, args=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.started and not self.cancelled:
            self.function(*self.args)


class TimerFactory:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def __call__(self, interval, function, args=None) -> FakeTimer:
        timer = FakeTimer(interval, function, args)
        self.timers.append(timer)
        return timer


def make_tracks(count: int, duration: int = 180) -> List[Track]:
    return [
        Track(id=f"t{i}", uri=f"http://music.test/t{i}", title=f"Song {i}",
              artist="Artist", duration=duration)
        for i in range(count)
    ]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def timers() -> TimerFactory:
    return TimerFactory()


@pytest.fixture
def inbox() -> "queue.Queue[Any]":
    return queue.Queue()


@pytest.fixture
def tracks() -> List[Track]:
    """Five three-minute tracks."""
    return make_tracks(5)
