"""Keyboard dispatch.

A keymap is built per page from the [keys] config: global actions first,
then page actions (which win on conflict), then fixed arrow/enter/escape
keys that cannot be rebound away.
"""

from dataclasses import replace
from typing import Dict, Optional

from blessed.keyboard import Keystroke

from subtune.core.config import KeysConfig

from .state import PAGES, UIState

Keymap = Dict[str, Dict[str, str]]

GLOBAL_ACTIONS = (
    "page_browser",
    "page_queue",
    "page_playlists",
    "page_log",
    "play_next_track",
    "play_prev_track",
    "play_pause",
    "stop",
    "volume_up",
    "volume_down",
    "seek_forward",
    "seek_back",
    "add_random_songs",
    "clear_queue",
    "quit",
    "up",
    "down",
    "left",
    "right",
    "select",
    "search",
    "search_next",
    "search_prev",
)

PAGE_ACTIONS = {
    "browser": ("refresh", "add", "star", "add_to_playlist"),
    "queue": ("remove_from_queue", "star"),
    "playlists": ("refresh", "add", "star", "new_playlist", "delete_playlist"),
    "log": (),
}

FIXED_KEYS = {
    "KEY_UP": "up",
    "KEY_DOWN": "down",
    "KEY_LEFT": "left",
    "KEY_RIGHT": "right",
    "KEY_ENTER": "select",
    "KEY_ESCAPE": "cancel",
}

# Only these reach the handlers while the add-to-playlist/delete modal is open
PICKER_ACTIONS = {"up", "down", "select", "cancel"}


def build_keymap(keys: KeysConfig) -> Keymap:
    keymap: Keymap = {}
    for page in PAGES:
        table: Dict[str, str] = {}
        for action in GLOBAL_ACTIONS + PAGE_ACTIONS[page]:
            key = keys.key_for(action)
            if key:
                table[key] = action
        for key, action in FIXED_KEYS.items():
            table.setdefault(key, action)
        if page == "queue":
            table.setdefault("KEY_DELETE", "remove_from_queue")
        keymap[page] = table
    return keymap


def key_name(key: Keystroke) -> str:
    """Blessed name for special keys (``KEY_ENTER``), the character otherwise."""
    if key.is_sequence and key.name:
        return key.name
    if str(key) in ("\n", "\r"):
        return "KEY_ENTER"
    return str(key)


def resolve_action(keymap: Keymap, state: UIState, name: str) -> Optional[str]:
    action = keymap.get(state.page, {}).get(name)
    if state.picker_kind and action not in PICKER_ACTIONS:
        return None
    return action


def handle_text_input(state: UIState, key: Keystroke) -> tuple[UIState, bool]:
    """Edit the input line. Returns (state, committed)."""
    name = key_name(key)
    if name == "KEY_ENTER":
        return state, True
    if name == "KEY_ESCAPE":
        return replace(state, input_mode=None, input_text=""), False
    if name in ("KEY_BACKSPACE", "KEY_DELETE") or str(key) == "\x7f":
        return replace(state, input_text=state.input_text[:-1]), False
    if not key.is_sequence and str(key).isprintable():
        return replace(state, input_text=state.input_text + str(key)), False
    return state, False
