"""UI state management - immutable state updates.

Rows are plain data (kind, id, label). What happens when a row is activated
is decided by subtune.ui.actions from the row kind, not stored on the row.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Set, Tuple

from subtune.domain.catalog import Directory, Index, RemotePlaylist
from subtune.domain.library import Track
from subtune.domain.playback import PlayerSnapshot, StatusLine

from .helpers.scrolling import calculate_scroll_offset, clamp_selection, move_selection
from .styles.formatting import entity_row_text, queue_row_text

PAGES = ("browser", "queue", "playlists", "log")

PAGE_TITLES = {
    "browser": "Browser",
    "queue": "Queue",
    "playlists": "Playlists",
    "log": "Log",
}

# Row kinds
ARTIST = "artist"
PARENT = "parent"
DIRECTORY = "dir"
SONG = "song"
PLAYLIST = "playlist"
QUEUED = "queued"


@dataclass(frozen=True)
class Row:
    kind: str
    id: str
    label: str


@dataclass(frozen=True)
class Pane:
    """A selectable list."""

    rows: Tuple[Row, ...] = ()
    selected: int = 0
    scroll: int = 0

    def current(self) -> Optional[Row]:
        if not self.rows:
            return None
        return self.rows[clamp_selection(self.selected, len(self.rows))]


@dataclass(frozen=True)
class UIState:
    """Everything the renderer needs. Application state lives in the Player."""

    page: str = "browser"
    focus: str = "left"  # "left" or "right" on two-pane pages
    visible_rows: int = 20

    # Browser
    artists: Pane = field(default_factory=Pane)
    entries: Pane = field(default_factory=Pane)
    directory: Optional[Directory] = None

    # Playlists
    remote_playlists: Tuple[RemotePlaylist, ...] = ()
    open_playlist: Optional[RemotePlaylist] = None  # Shown in the right pane
    playlist_list: Pane = field(default_factory=Pane)
    playlist_songs: Pane = field(default_factory=Pane)

    # Queue
    queue: Pane = field(default_factory=Pane)

    # Player readout
    snapshot: Optional[PlayerSnapshot] = None
    status: StatusLine = field(default_factory=StatusLine)

    # Text input ("search" or "new_playlist")
    input_mode: Optional[str] = None
    input_text: str = ""
    search_term: str = ""

    # Modal list ("add_to_playlist" or "delete_playlist")
    picker_kind: Optional[str] = None
    picker: Pane = field(default_factory=Pane)

    message: str = ""
    message_color: str = "white"
    should_quit: bool = False


# ---- row builders ----


def artist_rows(indexes: Iterable[Index]) -> Tuple[Row, ...]:
    return tuple(
        Row(ARTIST, artist.id, artist.name)
        for index in indexes
        for artist in index.artists
    )


def entity_rows(directory: Directory, starred: Set[str]) -> Tuple[Row, ...]:
    rows: List[Row] = []
    if directory.parent:
        rows.append(Row(PARENT, directory.parent, "[..]"))
    for entity in directory.entities:
        kind = DIRECTORY if entity.is_dir else SONG
        rows.append(Row(kind, entity.id, entity_row_text(entity, entity.id in starred)))
    return tuple(rows)


def playlist_rows(playlists: Iterable[RemotePlaylist]) -> Tuple[Row, ...]:
    return tuple(Row(PLAYLIST, p.id, p.name) for p in playlists)


def playlist_song_rows(playlist: RemotePlaylist, starred: Set[str]) -> Tuple[Row, ...]:
    return tuple(
        Row(SONG, e.id, entity_row_text(e, e.id in starred)) for e in playlist.entries
    )


def queue_rows(rows: Iterable[Tuple[Track, bool]], starred: Set[str]) -> Tuple[Row, ...]:
    return tuple(
        Row(QUEUED, track.id, queue_row_text(track, track.id in starred, current))
        for track, current in rows
    )


# ---- pane updates ----


def with_rows(pane: Pane, rows: Tuple[Row, ...], reset: bool = False) -> Pane:
    """Swap a pane's rows, keeping the selection when it is still valid."""
    selected = 0 if reset else clamp_selection(pane.selected, len(rows))
    scroll = 0 if reset else min(pane.scroll, selected)
    return Pane(rows=rows, selected=selected, scroll=scroll)


def select(pane: Pane, index: int, visible: int) -> Pane:
    selected = clamp_selection(index, len(pane.rows))
    scroll = calculate_scroll_offset(selected, pane.scroll, visible, len(pane.rows))
    return replace(pane, selected=selected, scroll=scroll)


def active_pane_name(state: UIState) -> Optional[str]:
    if state.picker_kind:
        return "picker"
    if state.page == "browser":
        return "artists" if state.focus == "left" else "entries"
    if state.page == "playlists":
        return "playlist_list" if state.focus == "left" else "playlist_songs"
    if state.page == "queue":
        return "queue"
    return None


def active_pane(state: UIState) -> Optional[Pane]:
    name = active_pane_name(state)
    return getattr(state, name) if name else None


def update_active_pane(state: UIState, pane: Pane) -> UIState:
    name = active_pane_name(state)
    if name is None:
        return state
    return replace(state, **{name: pane})


def move(state: UIState, delta: int) -> UIState:
    pane = active_pane(state)
    if pane is None:
        return state
    index = move_selection(pane.selected, delta, len(pane.rows))
    return update_active_pane(state, select(pane, index, state.visible_rows))


def advance_selection(state: UIState) -> UIState:
    """Step the active pane down one row after an add, as the add keys do."""
    return move(state, 1)


# ---- search ----


def find_match(
    rows: Tuple[Row, ...], term: str, start: int, forward: bool = True
) -> Optional[int]:
    """Index of the next row (after or before start) whose label contains term.

    Wraps around; case-insensitive. Returns None when nothing matches.
    """
    if not term or not rows:
        return None
    needle = term.lower()
    matches = [i for i, row in enumerate(rows) if needle in row.label.lower()]
    if not matches:
        return None
    if forward:
        return next((i for i in matches if i > start), matches[0])
    return next((i for i in reversed(matches) if i < start), matches[-1])


def search(state: UIState, forward: bool = True, include_current: bool = False) -> UIState:
    pane = active_pane(state)
    if pane is None:
        return state
    start = pane.selected - 1 if include_current else pane.selected
    index = find_match(pane.rows, state.search_term, start, forward)
    if index is None:
        return set_message(state, f"No match for '{state.search_term}'", "yellow")
    return update_active_pane(state, select(pane, index, state.visible_rows))


# ---- page / focus ----


def set_page(state: UIState, page: str) -> UIState:
    if page not in PAGES:
        return state
    return replace(state, page=page, focus="left")


def set_focus(state: UIState, focus: str) -> UIState:
    if state.page not in ("browser", "playlists"):
        return state
    return replace(state, focus=focus)


def set_message(state: UIState, text: str, color: str = "white") -> UIState:
    return replace(state, message=text, message_color=color)


# ---- input and picker ----


def start_input(state: UIState, mode: str) -> UIState:
    return replace(state, input_mode=mode, input_text="")


def end_input(state: UIState) -> UIState:
    return replace(state, input_mode=None, input_text="")


def open_picker(state: UIState, kind: str, rows: Tuple[Row, ...]) -> UIState:
    return replace(state, picker_kind=kind, picker=Pane(rows=rows))


def close_picker(state: UIState) -> UIState:
    return replace(state, picker_kind=None, picker=Pane())


# ---- player readout ----


def apply_player_update(
    state: UIState,
    snapshot: PlayerSnapshot,
    status: StatusLine,
    rows: Iterable[Tuple[Track, bool]],
    starred: Set[str],
) -> UIState:
    return replace(
        state,
        snapshot=snapshot,
        status=status,
        queue=with_rows(state.queue, queue_rows(rows, starred)),
    )
