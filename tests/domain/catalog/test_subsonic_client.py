"""Tests for the Subsonic client against a mocked HTTP session."""

import hashlib
from unittest.mock import MagicMock, patch

import pytest
import requests

from subtune.domain.catalog import (
    DirectoryCache,
    Entity,
    RemoteCallFailed,
    RemotePlaylist,
    SubsonicClient,
    entity_to_track,
    resolve_playlist,
)


def ok(**body) -> dict:
    return {"subsonic-response": {"status": "ok", "version": "1.15.0", **body}}


def failed(code: int, message: str) -> dict:
    return {
        "subsonic-response": {
            "status": "failed",
            "error": {"code": code, "message": message},
        }
    }


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.get.return_value.json.return_value = ok()
    return session


@pytest.fixture
def client(session) -> SubsonicClient:
    return SubsonicClient(
        "https://music.example.com/", "alice", "sesame", session=session
    )


def sent_params(session: MagicMock) -> dict:
    return session.get.call_args.kwargs["params"]


class TestAuthentication:
    """Every request carries credentials and client identification."""

    def test_token_auth(self, client, session):
        with patch("secrets.token_hex", return_value="c19b2d"):
            client.ping()

        params = sent_params(session)
        assert params["u"] == "alice"
        assert params["s"] == "c19b2d"
        assert params["t"] == hashlib.md5(b"sesamec19b2d").hexdigest()
        assert params["c"] == "subtune"
        assert params["f"] == "json"
        assert "p" not in params

    def test_plaintext_auth_is_hex_encoded(self, session):
        client = SubsonicClient(
            "https://music.example.com", "alice", "sesame", plaintext=True, session=session
        )
        client.ping()

        params = sent_params(session)
        assert params["p"] == "enc:736573616d65"
        assert "t" not in params

    def test_url_strips_trailing_slash(self, client, session):
        client.ping()
        assert session.get.call_args.args[0] == "https://music.example.com/rest/ping"


class TestErrors:
    """Transport, HTTP and API failures all raise RemoteCallFailed."""

    def test_failed_status(self, client, session):
        session.get.return_value.json.return_value = failed(40, "Wrong username or password")

        with pytest.raises(RemoteCallFailed) as exc_info:
            client.get_indexes()

        assert exc_info.value.code == 40
        assert exc_info.value.endpoint == "getIndexes"
        assert "Wrong username" in str(exc_info.value)

    def test_connection_error(self, client, session):
        session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(RemoteCallFailed, match="request failed"):
            client.ping()

    def test_http_error_keeps_status_code(self, client, session):
        response = MagicMock(status_code=503)
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError(
            "503 Server Error", response=response
        )

        with pytest.raises(RemoteCallFailed) as exc_info:
            client.ping()
        assert exc_info.value.code == 503

    def test_invalid_json(self, client, session):
        session.get.return_value.json.side_effect = ValueError("Expecting value")

        with pytest.raises(RemoteCallFailed, match="invalid JSON"):
            client.ping()

    def test_missing_envelope(self, client, session):
        session.get.return_value.json.return_value = {"unexpected": True}

        with pytest.raises(RemoteCallFailed, match="missing subsonic-response"):
            client.ping()


class TestBrowsing:
    """Index and directory listings."""

    def test_get_indexes(self, client, session):
        session.get.return_value.json.return_value = ok(
            indexes={
                "index": [
                    {"name": "A", "artist": [{"id": "1", "name": "ABBA"}]},
                    {"name": "B", "artist": {"id": "2", "name": "Beck"}},
                ]
            }
        )

        indexes = client.get_indexes()

        assert [i.name for i in indexes] == ["A", "B"]
        assert indexes[1].artists[0].name == "Beck"

    def test_directory_sorted_dirs_first(self, client, session):
        session.get.return_value.json.return_value = ok(
            directory={
                "id": "10",
                "parent": "1",
                "name": "ABBA",
                "child": [
                    {"id": "s2", "title": "Waterloo", "track": 2},
                    {"id": "d1", "title": "Arrival", "isDir": True},
                    {"id": "s1", "title": "Mamma Mia", "track": 1},
                ],
            }
        )

        directory = client.get_music_directory("10")

        assert [e.id for e in directory.entities] == ["d1", "s1", "s2"]
        assert directory.parent == "1"

    def test_directory_is_cached_until_invalidated(self, client, session):
        session.get.return_value.json.return_value = ok(
            directory={"id": "10", "name": "ABBA", "child": []}
        )

        client.get_music_directory("10")
        client.get_music_directory("10")
        assert session.get.call_count == 1

        client.cache.invalidate("10")
        client.get_music_directory("10")
        assert session.get.call_count == 2

    def test_failed_directory_is_not_cached(self, client, session):
        session.get.return_value.json.return_value = failed(70, "Not found")

        with pytest.raises(RemoteCallFailed):
            client.get_music_directory("missing")
        assert "missing" not in client.cache

    def test_random_songs_size(self, client, session):
        session.get.return_value.json.return_value = ok(
            randomSongs={"song": [{"id": "s1", "title": "One"}]}
        )

        songs = client.get_random_songs(25)

        assert sent_params(session)["size"] == 25
        assert songs == [Entity(id="s1", title="One")]


class TestPlaylists:
    """Playlist listing and editing."""

    def test_single_playlist_object_is_normalized(self, client, session):
        session.get.return_value.json.return_value = ok(
            playlists={"playlist": {"id": "p1", "name": "Mix", "songCount": 3}}
        )

        playlists = client.get_playlists()

        assert playlists == [RemotePlaylist(id="p1", name="Mix", song_count=3)]

    def test_no_playlists(self, client, session):
        session.get.return_value.json.return_value = ok(playlists={})
        assert client.get_playlists() == []

    def test_create_playlist_with_empty_reply(self, client, session):
        playlist = client.create_playlist("New")

        assert sent_params(session)["name"] == "New"
        assert playlist.name == "New"

    def test_add_to_playlist(self, client, session):
        client.add_to_playlist("p1", "s9")

        assert session.get.call_args.args[0].endswith("/rest/updatePlaylist")
        params = sent_params(session)
        assert params["playlistId"] == "p1"
        assert params["songIdToAdd"] == "s9"

    def test_resolve_playlist_fetches_entries(self, session, client):
        session.get.return_value.json.return_value = ok(
            playlist={"id": "p1", "name": "Mix", "songCount": 1, "entry": [{"id": "s1"}]}
        )

        resolved, error = resolve_playlist(client, RemotePlaylist("p1", "Mix", song_count=1))

        assert error is None
        assert [e.id for e in resolved.entries] == ["s1"]

    def test_resolve_playlist_failure(self, session, client):
        session.get.return_value.json.return_value = failed(70, "Not found")
        listed = RemotePlaylist("p1", "Mix", song_count=1)

        resolved, error = resolve_playlist(client, listed)

        assert resolved is listed
        assert "Not found" in error

    def test_resolve_empty_playlist_skips_request(self, session, client):
        resolve_playlist(client, RemotePlaylist("p1", "Empty"))
        session.get.assert_not_called()


class TestStarsAndScrobbles:
    """Star, unstar and scrobble endpoints."""

    @pytest.mark.parametrize("starred, endpoint", [(True, "star"), (False, "unstar")])
    def test_set_starred(self, client, session, starred, endpoint):
        client.set_starred("s1", starred)

        assert session.get.call_args.args[0].endswith(f"/rest/{endpoint}")
        assert sent_params(session)["id"] == "s1"

    @pytest.mark.parametrize(
        "method, submission",
        [("submit_now_playing", "false"), ("submit_scrobble", "true")],
    )
    def test_scrobble_submission_flag(self, client, session, method, submission):
        getattr(client, method)("s1")

        assert session.get.call_args.args[0].endswith("/rest/scrobble")
        assert sent_params(session)["submission"] == submission


class TestTracks:
    """Stream URLs and track conversion."""

    def test_stream_url(self, client):
        url = client.stream_url("s1")

        assert url.startswith("https://music.example.com/rest/stream?")
        assert "id=s1" in url
        assert "u=alice" in url

    def test_entity_to_track_fallbacks(self, client):
        entity = Entity(id="s1", path="ABBA/Arrival/01 Dancing Queen.mp3", duration=231)

        track = entity_to_track(client, entity, parent_name="Arrival")

        assert track.title == "01 Dancing Queen.mp3"
        assert track.artist == "Arrival"
        assert track.duration == 231
        assert "id=s1" in track.uri


class TestDirectoryCache:
    """Explicit invalidation of cached listings."""

    def test_invalidate_reports_removal(self):
        cache = DirectoryCache()
        cache.put("10", MagicMock())

        assert cache.invalidate("10") is True
        assert cache.invalidate("10") is False

    def test_invalidate_all(self):
        cache = DirectoryCache()
        cache.put("1", MagicMock())
        cache.put("2", MagicMock())

        cache.invalidate_all()

        assert len(cache) == 0
        assert cache.get("1") is None
