"""
Subsonic API operations.

Handles browsing, playlists, stars, random songs, scrobbles and stream URLs
against any Subsonic-compatible server (Navidrome, Airsonic, Gonic, ...).
"""

import hashlib
import secrets
from typing import Any, Dict, List, Optional, Protocol, Tuple

import requests
from loguru import logger

from ..library.models import Track, make_track
from .cache import DirectoryCache
from .exceptions import RemoteCallFailed
from .models import (
    Directory,
    Entity,
    Index,
    RemotePlaylist,
    parse_directory,
    parse_indexes,
    parse_playlist,
    parse_song_list,
)

API_VERSION = "1.15.0"
CLIENT_NAME = "subtune"

# Seconds to wait for the server before giving up on a request
REQUEST_TIMEOUT = 30


class CatalogService(Protocol):
    """Contract the playback core and UI use to reach the remote catalog."""

    def get_indexes(self) -> List[Index]: ...

    def get_music_directory(self, directory_id: str) -> Directory: ...

    def get_playlists(self) -> List[RemotePlaylist]: ...

    def get_playlist(self, playlist_id: str) -> RemotePlaylist: ...

    def create_playlist(self, name: str) -> RemotePlaylist: ...

    def delete_playlist(self, playlist_id: str) -> None: ...

    def add_to_playlist(self, playlist_id: str, song_id: str) -> None: ...

    def get_random_songs(self, size: int = 50) -> List[Entity]: ...

    def get_starred(self) -> List[Entity]: ...

    def set_starred(self, item_id: str, starred: bool) -> None: ...

    def submit_now_playing(self, song_id: str) -> None: ...

    def submit_scrobble(self, song_id: str) -> None: ...

    def stream_url(self, song_id: str) -> str: ...


def _auth_params(username: str, password: str, plaintext: bool) -> Dict[str, str]:
    """Build Subsonic authentication query parameters.

    Token auth sends md5(password + salt) with a fresh random salt. Legacy
    servers that only support plaintext get the hex-encoded password.
    """
    params = {"u": username, "v": API_VERSION, "c": CLIENT_NAME, "f": "json"}
    if plaintext:
        params["p"] = "enc:" + password.encode("utf-8").hex()
    else:
        salt = secrets.token_hex(8)
        token = hashlib.md5((password + salt).encode("utf-8")).hexdigest()
        params["t"] = token
        params["s"] = salt
    return params


class SubsonicClient:
    """Thin stateful wrapper over the Subsonic REST API.

    Holds the HTTP session and the directory cache. Every method raises
    RemoteCallFailed on transport errors, HTTP errors or failed replies.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        plaintext: bool = False,
        cache: Optional[DirectoryCache] = None,
        session: Optional[requests.Session] = None,
    ):
        self.host = host.rstrip("/")
        self.username = username
        self._password = password
        self.plaintext = plaintext
        self.cache = cache if cache is not None else DirectoryCache()
        self.session = session or requests.Session()

    # ---- protocol helpers ----

    def _url(self, endpoint: str) -> str:
        return f"{self.host}/rest/{endpoint}"

    def _params(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = _auth_params(
            self.username, self._password, self.plaintext
        )
        if extra:
            params.update(extra)
        return params

    def _request(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Call an endpoint and return the unwrapped ``subsonic-response`` body."""
        try:
            response = self.session.get(
                self._url(endpoint),
                params=self._params(params),
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise RemoteCallFailed(endpoint, f"HTTP error: {e}", status) from e
        except requests.RequestException as e:
            raise RemoteCallFailed(endpoint, f"request failed: {e}") from e
        except ValueError as e:
            raise RemoteCallFailed(endpoint, f"invalid JSON: {e}") from e

        body = payload.get("subsonic-response")
        if not isinstance(body, dict):
            raise RemoteCallFailed(endpoint, "missing subsonic-response")

        if body.get("status") != "ok":
            error = body.get("error") or {}
            raise RemoteCallFailed(
                endpoint, error.get("message", "unknown error"), error.get("code")
            )

        return body

    # ---- browsing ----

    def ping(self) -> bool:
        self._request("ping")
        return True

    def get_indexes(self) -> List[Index]:
        body = self._request("getIndexes")
        return parse_indexes(body.get("indexes") or {})

    def get_music_directory(self, directory_id: str) -> Directory:
        cached = self.cache.get(directory_id)
        if cached is not None:
            return cached

        body = self._request("getMusicDirectory", {"id": directory_id})
        directory = parse_directory(body.get("directory") or {})
        self.cache.put(directory_id, directory)
        return directory

    def get_random_songs(self, size: int = 50) -> List[Entity]:
        body = self._request("getRandomSongs", {"size": size})
        return parse_song_list(body.get("randomSongs"))

    def get_starred(self) -> List[Entity]:
        body = self._request("getStarred")
        return parse_song_list(body.get("starred"))

    # ---- playlists ----

    def get_playlists(self) -> List[RemotePlaylist]:
        body = self._request("getPlaylists")
        playlists = (body.get("playlists") or {}).get("playlist") or []
        if isinstance(playlists, dict):
            playlists = [playlists]
        return [parse_playlist(p) for p in playlists]

    def get_playlist(self, playlist_id: str) -> RemotePlaylist:
        body = self._request("getPlaylist", {"id": playlist_id})
        return parse_playlist(body.get("playlist") or {})

    def create_playlist(self, name: str) -> RemotePlaylist:
        body = self._request("createPlaylist", {"name": name})
        playlist = body.get("playlist")
        if playlist:
            return parse_playlist(playlist)
        # Servers implementing API < 1.14 reply with an empty body
        return RemotePlaylist(id="", name=name)

    def delete_playlist(self, playlist_id: str) -> None:
        self._request("deletePlaylist", {"id": playlist_id})

    def add_to_playlist(self, playlist_id: str, song_id: str) -> None:
        self._request(
            "updatePlaylist", {"playlistId": playlist_id, "songIdToAdd": song_id}
        )

    # ---- stars and scrobbles ----

    def set_starred(self, item_id: str, starred: bool) -> None:
        self._request("star" if starred else "unstar", {"id": item_id})

    def submit_now_playing(self, song_id: str) -> None:
        self._request("scrobble", {"id": song_id, "submission": "false"})

    def submit_scrobble(self, song_id: str) -> None:
        self._request("scrobble", {"id": song_id, "submission": "true"})

    # ---- streaming ----

    def stream_url(self, song_id: str) -> str:
        """Build an authenticated stream URL for the backend to load."""
        request = requests.Request(
            "GET", self._url("stream"), params=self._params({"id": song_id})
        ).prepare()
        return request.url


def resolve_playlist(
    client: CatalogService, playlist: RemotePlaylist
) -> Tuple[RemotePlaylist, Optional[str]]:
    """Fetch full entries for a playlist listed without them.

    Returns:
        (playlist_with_entries, error_message or None)
    """
    if playlist.entries or playlist.song_count == 0:
        return playlist, None
    try:
        return client.get_playlist(playlist.id), None
    except RemoteCallFailed as e:
        logger.warning(f"resolve_playlist: getPlaylist {playlist.id} -- {e}")
        return playlist, str(e)


def entity_to_track(
    client: CatalogService, entity: Entity, parent_name: Optional[str] = None
) -> Track:
    """Convert a song entity into a queueable Track with a stream URI."""
    return make_track(
        track_id=entity.id,
        uri=client.stream_url(entity.id),
        title=entity.title,
        path=entity.path,
        artist=entity.artist,
        parent_name=parent_name,
        duration=entity.duration,
    )
