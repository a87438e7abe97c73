"""
Action handlers for the blessed UI.

Two dispatch tables: ACTION_HANDLERS maps a keybinding action name to a
handler, and ROW_HANDLERS maps a row kind to what "select" does with it.
Every handler takes (ctx, state) and returns the next UIState; playback
changes go through the Player, never through UI state.
"""

from dataclasses import replace
from typing import Callable, Dict, List, Optional

from loguru import logger

from subtune.context import AppContext
from subtune.domain.catalog import (
    Directory,
    Entity,
    RemoteCallFailed,
    RemotePlaylist,
    entity_to_track,
    resolve_playlist,
)
from subtune.domain.library import Playlist, Track
from subtune.domain.playback import IndexOutOfRange, PlaybackStatus

from . import state as ui
from .state import Row, UIState

ActionHandler = Callable[[AppContext, UIState], UIState]
RowHandler = Callable[[AppContext, UIState, Row], UIState]


# ---- shared helpers ----


def refresh_queue(ctx: AppContext, state: UIState) -> UIState:
    """Rebuild the queue pane and player readout from the Player."""
    return replace(
        state,
        snapshot=ctx.player.snapshot(),
        queue=ui.with_rows(
            state.queue, ui.queue_rows(ctx.player.queue_rows(), ctx.favorites.ids())
        ),
    )


def refresh_markers(ctx: AppContext, state: UIState) -> UIState:
    """Re-render every row that shows a favorite marker."""
    starred = ctx.favorites.ids()
    if state.directory is not None:
        state = replace(
            state,
            entries=ui.with_rows(state.entries, ui.entity_rows(state.directory, starred)),
        )
    if state.open_playlist is not None:
        state = replace(
            state,
            playlist_songs=ui.with_rows(
                state.playlist_songs, ui.playlist_song_rows(state.open_playlist, starred)
            ),
        )
    return refresh_queue(ctx, state)


def _remote_failed(state: UIState, operation: str, error: RemoteCallFailed) -> UIState:
    logger.error(f"{operation} -- {error}")
    return ui.set_message(state, f"{operation} failed: {error}", "red")


def _selected_entity(state: UIState) -> Optional[Entity]:
    """The song or directory under the cursor on the browser or playlist page."""
    pane = ui.active_pane(state)
    row = pane.current() if pane else None
    if row is None or row.kind not in (ui.SONG, ui.DIRECTORY):
        return None

    if state.page == "browser" and state.directory is not None:
        entities = state.directory.entities
    elif state.page == "playlists" and state.open_playlist is not None:
        entities = state.open_playlist.entries
    else:
        return None

    # Rows and entities share order; the parent row shifts browser rows by one
    offset = 1 if pane.rows and pane.rows[0].kind == ui.PARENT else 0
    index = pane.selected - offset
    if 0 <= index < len(entities) and entities[index].id == row.id:
        return entities[index]
    return next((e for e in entities if e.id == row.id), None)


def _to_track(ctx: AppContext, state: UIState, entity: Entity) -> Track:
    parent_name = state.directory.name if state.page == "browser" and state.directory else None
    return entity_to_track(ctx.catalog, entity, parent_name)


def _collect_tracks(ctx: AppContext, directory: Directory) -> List[Track]:
    """All songs below a directory, depth first, in listing order."""
    tracks: List[Track] = []
    for entity in directory.entities:
        if entity.is_dir:
            try:
                child = ctx.catalog.get_music_directory(entity.id)
            except RemoteCallFailed as e:
                logger.error(f"add_directory: getMusicDirectory {entity.id} -- {e}")
                continue
            tracks.extend(_collect_tracks(ctx, child))
        else:
            tracks.append(entity_to_track(ctx.catalog, entity, directory.name))
    return tracks


def _reload_playlists(ctx: AppContext, state: UIState) -> UIState:
    try:
        playlists = ctx.catalog.get_playlists()
    except RemoteCallFailed as e:
        return _remote_failed(state, "getPlaylists", e)
    ctx.remote_playlists = playlists
    return replace(
        state,
        remote_playlists=tuple(playlists),
        playlist_list=ui.with_rows(state.playlist_list, ui.playlist_rows(playlists)),
    )


# ---- row handlers ----


def load_directory(ctx: AppContext, state: UIState, directory_id: str) -> UIState:
    try:
        directory = ctx.catalog.get_music_directory(directory_id)
    except RemoteCallFailed as e:
        return _remote_failed(state, f"getMusicDirectory {directory_id}", e)

    rows = ui.entity_rows(directory, ctx.favorites.ids())
    return replace(
        state,
        directory=directory,
        entries=ui.with_rows(state.entries, rows, reset=True),
        focus="right",
    )


def open_directory(ctx: AppContext, state: UIState, row: Row) -> UIState:
    return load_directory(ctx, state, row.id)


def play_song(ctx: AppContext, state: UIState, row: Row) -> UIState:
    """Play a song from the browser, or a playlist from the chosen song."""
    entity = _selected_entity(state)
    if entity is None:
        return state

    if state.page == "playlists" and state.open_playlist is not None:
        return _play_remote_playlist(
            ctx, state, state.open_playlist, state.playlist_songs.selected
        )

    ctx.player.append(_to_track(ctx, state, entity))
    try:
        ctx.player.play(len(ctx.player.queue_rows()) - 1)
    except IndexOutOfRange as e:
        logger.warning(f"play_song: {e}")
    return refresh_queue(ctx, state)


def _play_remote_playlist(
    ctx: AppContext, state: UIState, remote: RemotePlaylist, start: int
) -> UIState:
    tracks = [entity_to_track(ctx.catalog, e) for e in remote.entries]
    index = ctx.player.add_or_replace_playlist(
        Playlist(id=remote.id, name=remote.name, tracks=tracks)
    )
    try:
        ctx.player.play_playlist(index, start)
    except IndexOutOfRange as e:
        logger.warning(f"play_playlist: {e}")
    return refresh_queue(ctx, state)


def open_playlist(ctx: AppContext, state: UIState, row: Row) -> UIState:
    remote = next((p for p in state.remote_playlists if p.id == row.id), None)
    if remote is None:
        return state

    remote, error = resolve_playlist(ctx.catalog, remote)
    if error:
        return ui.set_message(state, f"Could not load {remote.name}: {error}", "red")

    rows = ui.playlist_song_rows(remote, ctx.favorites.ids())
    return replace(
        state,
        open_playlist=remote,
        playlist_songs=ui.with_rows(state.playlist_songs, rows, reset=True),
        focus="right",
    )


def play_queued(ctx: AppContext, state: UIState, row: Row) -> UIState:
    try:
        ctx.player.play(state.queue.selected)
    except IndexOutOfRange as e:
        logger.warning(f"play: {e}")
    return refresh_queue(ctx, state)


ROW_HANDLERS: Dict[str, RowHandler] = {
    ui.ARTIST: open_directory,
    ui.PARENT: open_directory,
    ui.DIRECTORY: open_directory,
    ui.SONG: play_song,
    ui.PLAYLIST: open_playlist,
    ui.QUEUED: play_queued,
}


# ---- modal completion ----


def commit_picker(ctx: AppContext, state: UIState) -> UIState:
    row = state.picker.current()
    kind = state.picker_kind
    state = ui.close_picker(state)
    if row is None:
        return state

    if kind == "add_to_playlist":
        entity = _selected_entity(state)
        if entity is None or entity.is_dir:
            return state
        try:
            ctx.catalog.add_to_playlist(row.id, entity.id)
        except RemoteCallFailed as e:
            return _remote_failed(state, f"updatePlaylist {row.id}", e)
        state = ui.set_message(state, f"Added {entity.title} to {row.label}", "green")
        return ui.advance_selection(_reload_playlists(ctx, state))

    if kind == "delete_playlist":
        target = state.playlist_list.current()
        if target is None:
            return state
        try:
            ctx.catalog.delete_playlist(target.id)
        except RemoteCallFailed as e:
            return _remote_failed(state, f"deletePlaylist {target.id}", e)
        if state.open_playlist is not None and state.open_playlist.id == target.id:
            state = replace(state, open_playlist=None, playlist_songs=ui.Pane())
        return _reload_playlists(ctx, state)

    return state


def commit_input(ctx: AppContext, state: UIState) -> UIState:
    mode, text = state.input_mode, state.input_text.strip()
    state = ui.end_input(state)
    if not text:
        return state

    if mode == "search":
        return ui.search(replace(state, search_term=text), include_current=True)

    if mode == "new_playlist":
        try:
            ctx.catalog.create_playlist(text)
        except RemoteCallFailed as e:
            return _remote_failed(state, f"createPlaylist {text}", e)
        return _reload_playlists(ctx, ui.set_message(state, f"Created {text}", "green"))

    return state


# ---- key actions ----


def select(ctx: AppContext, state: UIState) -> UIState:
    if state.picker_kind:
        return commit_picker(ctx, state)
    pane = ui.active_pane(state)
    row = pane.current() if pane else None
    if row is None:
        return state
    return ROW_HANDLERS[row.kind](ctx, state, row)


def _page(name: str) -> ActionHandler:
    def handler(ctx: AppContext, state: UIState) -> UIState:
        state = ui.set_page(state, name)
        return refresh_queue(ctx, state) if name == "queue" else state

    return handler


def play_next_track(ctx: AppContext, state: UIState) -> UIState:
    ctx.player.next()
    return refresh_queue(ctx, state)


def play_prev_track(ctx: AppContext, state: UIState) -> UIState:
    ctx.player.previous()
    return refresh_queue(ctx, state)


def play_pause(ctx: AppContext, state: UIState) -> UIState:
    status = ctx.player.pause()
    if status is PlaybackStatus.ERROR:
        state = ui.set_message(state, f"Playback error: {ctx.player.error}", "red")
    return refresh_queue(ctx, state)


def stop(ctx: AppContext, state: UIState) -> UIState:
    ctx.player.stop()
    return refresh_queue(ctx, state)


def _volume(direction: int) -> ActionHandler:
    def handler(ctx: AppContext, state: UIState) -> UIState:
        volume = ctx.player.adjust_volume(direction * ctx.config.player.volume_step)
        if volume is None:
            return ui.set_message(state, "Volume unavailable", "yellow")
        return replace(state, status=state.status._replace(volume=volume))

    return handler


def _seek(direction: int) -> ActionHandler:
    def handler(ctx: AppContext, state: UIState) -> UIState:
        ctx.player.seek(direction * ctx.config.player.seek_step)
        return state

    return handler


def quit_app(ctx: AppContext, state: UIState) -> UIState:
    return replace(state, should_quit=True)


def _move(delta: int) -> ActionHandler:
    def handler(ctx: AppContext, state: UIState) -> UIState:
        return ui.move(state, delta)

    return handler


def _focus(side: str) -> ActionHandler:
    def handler(ctx: AppContext, state: UIState) -> UIState:
        return ui.set_focus(state, side)

    return handler


def start_search(ctx: AppContext, state: UIState) -> UIState:
    if ui.active_pane(state) is None:
        return state
    return ui.start_input(state, "search")


def search_next(ctx: AppContext, state: UIState) -> UIState:
    return ui.search(state, forward=True)


def search_prev(ctx: AppContext, state: UIState) -> UIState:
    return ui.search(state, forward=False)


def refresh(ctx: AppContext, state: UIState) -> UIState:
    """Reload the list under the cursor and reconcile favorites."""
    try:
        ctx.favorites.load()
    except RemoteCallFailed as e:
        state = _remote_failed(state, "getStarred", e)

    if state.page == "playlists":
        state = _reload_playlists(ctx, state)
    elif state.page == "browser" and state.focus == "left":
        try:
            ctx.indexes = ctx.catalog.get_indexes()
        except RemoteCallFailed as e:
            return _remote_failed(state, "getIndexes", e)
        state = replace(
            state, artists=ui.with_rows(state.artists, ui.artist_rows(ctx.indexes))
        )
    elif state.page == "browser" and state.directory is not None:
        ctx.catalog.cache.invalidate(state.directory.id)
        selected = state.entries.selected
        state = load_directory(ctx, state, state.directory.id)
        state = replace(state, entries=ui.select(state.entries, selected, state.visible_rows))

    return refresh_markers(ctx, state)


def add(ctx: AppContext, state: UIState) -> UIState:
    """Queue the song, directory or playlist under the cursor."""
    pane = ui.active_pane(state)
    row = pane.current() if pane else None
    if row is None:
        return state

    if row.kind in (ui.ARTIST, ui.DIRECTORY):
        try:
            directory = ctx.catalog.get_music_directory(row.id)
        except RemoteCallFailed as e:
            return _remote_failed(state, f"getMusicDirectory {row.id}", e)
        added = ctx.player.append_many(_collect_tracks(ctx, directory))
        state = ui.set_message(state, f"Queued {added} songs", "green")
    elif row.kind == ui.SONG:
        entity = _selected_entity(state)
        if entity is None:
            return state
        ctx.player.append(_to_track(ctx, state, entity))
    elif row.kind == ui.PLAYLIST:
        remote = next((p for p in state.remote_playlists if p.id == row.id), None)
        if remote is None:
            return state
        remote, error = resolve_playlist(ctx.catalog, remote)
        if error:
            return ui.set_message(state, f"Could not load {remote.name}: {error}", "red")
        added = ctx.player.append_many(entity_to_track(ctx.catalog, e) for e in remote.entries)
        state = ui.set_message(state, f"Queued {added} songs from {remote.name}", "green")
    else:
        return state

    return ui.advance_selection(refresh_queue(ctx, state))


def star(ctx: AppContext, state: UIState) -> UIState:
    pane = ui.active_pane(state)
    row = pane.current() if pane else None
    if row is None or row.kind not in (ui.SONG, ui.QUEUED):
        return state
    ctx.favorites.toggle(row.id)
    return refresh_markers(ctx, state)


def add_to_playlist(ctx: AppContext, state: UIState) -> UIState:
    entity = _selected_entity(state)
    if entity is None or entity.is_dir or not state.remote_playlists:
        return state
    return ui.open_picker(
        state, "add_to_playlist", ui.playlist_rows(state.remote_playlists)
    )


def new_playlist(ctx: AppContext, state: UIState) -> UIState:
    return ui.start_input(state, "new_playlist")


def delete_playlist(ctx: AppContext, state: UIState) -> UIState:
    if state.focus != "left" or state.playlist_list.current() is None:
        return state
    return ui.open_picker(state, "delete_playlist", (Row("confirm", "", "Confirm"),))


def remove_from_queue(ctx: AppContext, state: UIState) -> UIState:
    try:
        ctx.player.remove_at(state.queue.selected)
    except IndexOutOfRange as e:
        logger.warning(f"remove_from_queue: {e}")
    return refresh_queue(ctx, state)


def clear_queue(ctx: AppContext, state: UIState) -> UIState:
    ctx.player.clear()
    return refresh_queue(ctx, state)


def add_random_songs(ctx: AppContext, state: UIState) -> UIState:
    try:
        songs = ctx.catalog.get_random_songs(ctx.config.server.random_songs)
    except RemoteCallFailed as e:
        return _remote_failed(state, "getRandomSongs", e)
    added = ctx.player.append_many(entity_to_track(ctx.catalog, s) for s in songs)
    return refresh_queue(ctx, ui.set_message(state, f"Queued {added} random songs", "green"))


def cancel(ctx: AppContext, state: UIState) -> UIState:
    if state.picker_kind:
        return ui.close_picker(state)
    return ui.set_message(state, "")


ACTION_HANDLERS: Dict[str, ActionHandler] = {
    "page_browser": _page("browser"),
    "page_queue": _page("queue"),
    "page_playlists": _page("playlists"),
    "page_log": _page("log"),
    "play_next_track": play_next_track,
    "play_prev_track": play_prev_track,
    "play_pause": play_pause,
    "stop": stop,
    "volume_up": _volume(1),
    "volume_down": _volume(-1),
    "seek_forward": _seek(1),
    "seek_back": _seek(-1),
    "quit": quit_app,
    "up": _move(-1),
    "down": _move(1),
    "left": _focus("left"),
    "right": _focus("right"),
    "select": select,
    "cancel": cancel,
    "search": start_search,
    "search_next": search_next,
    "search_prev": search_prev,
    "refresh": refresh,
    "add": add,
    "star": star,
    "add_to_playlist": add_to_playlist,
    "new_playlist": new_playlist,
    "delete_playlist": delete_playlist,
    "remove_from_queue": remove_from_queue,
    "clear_queue": clear_queue,
    "add_random_songs": add_random_songs,
}


def dispatch(ctx: AppContext, state: UIState, action: str) -> UIState:
    handler = ACTION_HANDLERS.get(action)
    if handler is None:
        logger.debug(f"No handler for action: {action}")
        return state
    return handler(ctx, state)
