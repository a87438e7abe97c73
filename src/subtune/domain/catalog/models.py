"""
Catalog response models.

Thin, immutable views over the JSON payloads returned by a Subsonic server.
"""

from typing import Any, Dict, List, NamedTuple, Optional


class Artist(NamedTuple):
    """An artist entry from the server index."""
    id: str
    name: str


class Index(NamedTuple):
    """One letter group of the artist index."""
    name: str
    artists: List[Artist]


class Entity(NamedTuple):
    """A child of a music directory - either a sub-directory or a song."""
    id: str
    parent: str = ""
    is_dir: bool = False
    title: str = ""
    artist: str = ""
    album: str = ""
    duration: int = 0
    path: str = ""
    track: int = 0


class Directory(NamedTuple):
    """A music directory listing."""
    id: str
    parent: str
    name: str
    entities: List[Entity]


class RemotePlaylist(NamedTuple):
    """A playlist as stored on the server."""
    id: str
    name: str
    song_count: int = 0
    duration: int = 0
    entries: List[Entity] = []


def _as_list(value: Any) -> List[Any]:
    """Normalize a field that older servers send as object-or-list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def parse_entity(data: Dict[str, Any]) -> Entity:
    """Parse a ``child``/``song``/``entry`` object."""
    return Entity(
        id=str(data.get("id", "")),
        parent=str(data.get("parent", "")),
        is_dir=bool(data.get("isDir", False)),
        title=data.get("title") or data.get("name") or "",
        artist=data.get("artist", ""),
        album=data.get("album", ""),
        duration=int(data.get("duration") or 0),
        path=data.get("path", ""),
        track=int(data.get("track") or 0),
    )


def sort_entities(entities: List[Entity]) -> List[Entity]:
    """Directories first, then songs by track number, then by title."""
    return sorted(
        entities,
        key=lambda e: (not e.is_dir, e.track, e.title.lower()),
    )


def parse_indexes(data: Dict[str, Any]) -> List[Index]:
    """Parse the ``indexes`` object of a getIndexes reply."""
    indexes = []
    for index in _as_list(data.get("index")):
        artists = [
            Artist(id=str(a.get("id", "")), name=a.get("name", ""))
            for a in _as_list(index.get("artist"))
        ]
        indexes.append(Index(name=index.get("name", ""), artists=artists))
    return indexes


def parse_directory(data: Dict[str, Any]) -> Directory:
    """Parse the ``directory`` object of a getMusicDirectory reply."""
    return Directory(
        id=str(data.get("id", "")),
        parent=str(data.get("parent") or ""),
        name=data.get("name", ""),
        entities=sort_entities([parse_entity(c) for c in _as_list(data.get("child"))]),
    )


def parse_playlist(data: Dict[str, Any]) -> RemotePlaylist:
    """Parse a ``playlist`` object (with or without ``entry`` songs)."""
    return RemotePlaylist(
        id=str(data.get("id", "")),
        name=data.get("name", ""),
        song_count=int(data.get("songCount") or 0),
        duration=int(data.get("duration") or 0),
        entries=[parse_entity(e) for e in _as_list(data.get("entry"))],
    )


def parse_song_list(data: Optional[Dict[str, Any]]) -> List[Entity]:
    """Parse objects carrying a ``song`` list (randomSongs, starred)."""
    if not data:
        return []
    return [parse_entity(s) for s in _as_list(data.get("song"))]
