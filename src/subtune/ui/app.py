"""Main event loop and entry point for blessed UI."""

import dataclasses
import threading
import time
from typing import Any, Callable, Dict, Union

from blessed import Terminal
from loguru import logger

from subtune.context import AppContext
from subtune.core.output import attach_ui_sink, detach_ui_sink
from subtune.domain.playback import PlayerSnapshot, StatusLine

from . import state as ui
from .actions import commit_input, dispatch, refresh_queue
from .components import calculate_layout, render
from .helpers import flush
from .keys import build_keymap, handle_text_input, key_name, resolve_action
from .state import UIState

# Seconds between status polls while nothing else happens
STATUS_POLL_INTERVAL = 1.0
INPUT_TIMEOUT = 0.1


def initial_state(ctx: AppContext) -> UIState:
    state = UIState(
        artists=ui.Pane(rows=ui.artist_rows(ctx.indexes)),
        remote_playlists=tuple(ctx.remote_playlists),
        playlist_list=ui.Pane(rows=ui.playlist_rows(ctx.remote_playlists)),
    )
    return refresh_queue(ctx, state)


def run_interactive_ui(ctx: AppContext) -> None:
    """
    Run the main interactive UI event loop.

    Args:
        ctx: Application context with config, catalog and playback services
    """
    term = Terminal()

    with term.fullscreen(), term.cbreak(), term.hidden_cursor():
        try:
            main_loop(term, ctx)
        except KeyboardInterrupt:
            pass


def main_loop(term: Terminal, ctx: AppContext) -> None:
    ui_state = initial_state(ctx)

    # Reentrant: handlers running under the lock may post updates
    # from the same thread
    ui_state_lock = threading.RLock()
    dirty = threading.Event()

    def update_ui_state_safe(updates: Union[Dict[str, Any], Callable[[UIState], UIState]]):
        """Thread-safe UIState update from background threads."""
        nonlocal ui_state
        with ui_state_lock:
            if callable(updates):
                ui_state = updates(ui_state)
            else:
                ui_state = dataclasses.replace(ui_state, **updates)
        dirty.set()

    def on_player_update(snapshot: PlayerSnapshot, status: StatusLine) -> None:
        rows = ctx.player.queue_rows()
        starred = ctx.favorites.ids()
        update_ui_state_safe(
            lambda s: ui.apply_player_update(s, snapshot, status, rows, starred)
        )

    def on_favorite_changed(track_id: str, starred: bool) -> None:
        logger.debug(f"Favorite {'added' if starred else 'removed'}: {track_id}")
        dirty.set()

    ctx.event_loop.on_update = on_player_update
    ctx.favorites.subscribe(on_favorite_changed)
    attach_ui_sink(lambda line, color: dirty.set(), level=ctx.config.logging.level)

    keymap = build_keymap(ctx.config.keys)
    key_labels = dict(ctx.config.keys.bindings)
    last_poll = 0.0
    last_size = None
    dirty.set()

    try:
        while True:
            size = (term.width, term.height)
            layout = calculate_layout(term)
            if size != last_size:
                last_size = size
                print(term.clear, end="")
                update_ui_state_safe({"visible_rows": layout["body_height"]})

            now = time.time()
            if now - last_poll >= STATUS_POLL_INTERVAL:
                last_poll = now
                ctx.event_loop.refresh()

            if dirty.is_set():
                dirty.clear()
                with ui_state_lock:
                    frame_state = ui_state
                render(term, frame_state, key_labels, layout)
                flush()

            key = term.inkey(timeout=INPUT_TIMEOUT)
            if not key:
                continue

            with ui_state_lock:
                ui_state = handle_key(ctx, ui_state, key, keymap)
                should_quit = ui_state.should_quit
            dirty.set()

            if should_quit:
                # Playback stops before the terminal is released
                ctx.shutdown()
                break
    finally:
        ctx.event_loop.on_update = None
        detach_ui_sink()


def handle_key(ctx: AppContext, state: UIState, key, keymap) -> UIState:
    """Route one keystroke: text input first, then the page keymap."""
    if state.input_mode:
        state, committed = handle_text_input(state, key)
        return commit_input(ctx, state) if committed else state

    action = resolve_action(keymap, state, key_name(key))
    if action is None:
        return state
    logger.debug(f"Key {key_name(key)!r} -> {action}")
    return dispatch(ctx, state, action)
