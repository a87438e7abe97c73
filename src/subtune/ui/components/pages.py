"""Page rendering functions."""

from typing import List, Optional, Tuple

from blessed import Terminal

from subtune.core.output import get_ui_lines
from subtune.domain.playback import PlaybackStatus

from ..helpers import write_at
from ..state import PAGE_TITLES, PAGES, Pane, UIState
from ..styles.formatting import format_player_status, truncate

# Rows reserved above (title, rule) and below (input, play state, status) the page
HEADER_HEIGHT = 2
FOOTER_HEIGHT = 3


def calculate_layout(term: Terminal) -> dict[str, int]:
    """Pure function: y positions and heights of every region."""
    height = max(term.height, HEADER_HEIGHT + FOOTER_HEIGHT + 1)
    body_height = height - HEADER_HEIGHT - FOOTER_HEIGHT
    return {
        "body_y": HEADER_HEIGHT,
        "body_height": body_height,
        "input_y": height - 3,
        "state_y": height - 2,
        "status_y": height - 1,
        "width": term.width,
    }


def _color(term: Terminal, name: str):
    color_map = {
        "white": term.white,
        "green": term.green,
        "red": term.red,
        "cyan": term.cyan,
        "yellow": term.yellow,
    }
    return color_map.get(name, term.white)


def render_title(term: Terminal, state: UIState, keys: dict[str, str]) -> None:
    parts = []
    for page in PAGES:
        label = f"[{keys.get('page_' + page, '?')}]{PAGE_TITLES[page]}"
        parts.append(term.reverse(label) if page == state.page else label)
    write_at(term, 0, 0, term.bold("Subtune") + "  " + "  ".join(parts))
    write_at(term, 0, 1, "─" * term.width)


def render_pane(
    term: Terminal,
    pane: Pane,
    x: int,
    y: int,
    width: int,
    height: int,
    focused: bool,
) -> None:
    """Render a list pane with its selection highlighted."""
    visible = pane.rows[pane.scroll : pane.scroll + height]
    for i in range(height):
        if i >= len(visible):
            write_at(term, x, y + i, " " * width, clear=False)
            continue
        text = truncate(visible[i].label, width - 1).ljust(width - 1) + " "
        if pane.scroll + i == pane.selected:
            text = term.reverse(text) if focused else term.bold(text)
        write_at(term, x, y + i, text, clear=False)


def render_two_panes(
    term: Terminal, state: UIState, left: Pane, right: Pane, layout: dict[str, int]
) -> None:
    width = layout["width"]
    left_width = max(10, width // 3)
    render_pane(
        term,
        left,
        0,
        layout["body_y"],
        left_width,
        layout["body_height"],
        state.focus == "left",
    )
    render_pane(
        term,
        right,
        left_width + 1,
        layout["body_y"],
        width - left_width - 1,
        layout["body_height"],
        state.focus == "right",
    )


def render_log(term: Terminal, layout: dict[str, int]) -> None:
    height = layout["body_height"]
    lines: List[Tuple[str, str]] = get_ui_lines()[-height:]
    for i in range(height):
        if i < len(lines):
            text, color = lines[i]
            write_at(term, 0, layout["body_y"] + i, _color(term, color)(truncate(text, term.width)))
        else:
            write_at(term, 0, layout["body_y"] + i, "")


def render_picker(term: Terminal, state: UIState, layout: dict[str, int]) -> None:
    """Centered modal list for add-to-playlist and delete confirmation."""
    title = "Add to playlist" if state.picker_kind == "add_to_playlist" else "Confirm deletion"
    width = min(40, layout["width"] - 4)
    height = min(len(state.picker.rows), layout["body_height"] - 2)
    x = (layout["width"] - width) // 2
    y = layout["body_y"] + 1
    write_at(term, x, y, term.bold(truncate(f" {title} ", width).ljust(width)), clear=False)
    render_pane(term, state.picker, x, y + 1, width, max(1, height), True)


def render_footer(term: Terminal, state: UIState, layout: dict[str, int]) -> None:
    if state.input_mode:
        prompt = "/" if state.input_mode == "search" else "New playlist: "
        write_at(term, 0, layout["input_y"], prompt + state.input_text + "█")
    else:
        write_at(
            term,
            0,
            layout["input_y"],
            _color(term, state.message_color)(truncate(state.message, term.width)),
        )

    snapshot = state.snapshot
    play_state = "stopped"
    if snapshot is not None:
        if snapshot.status is PlaybackStatus.PLAYING and snapshot.current_track:
            play_state = f"playing {snapshot.current_track.title}"
        else:
            play_state = snapshot.status.value
    color = "red" if play_state == "error" else "green" if play_state.startswith("playing") else "white"
    write_at(term, 0, layout["state_y"], _color(term, color)(truncate(play_state, term.width)))
    write_at(term, 0, layout["status_y"], term.bold(format_player_status(state.status)))


def render(
    term: Terminal, state: UIState, keys: dict[str, str], layout: Optional[dict[str, int]] = None
) -> None:
    """Draw the whole screen from state."""
    layout = layout or calculate_layout(term)
    render_title(term, state, keys)

    if state.page == "browser":
        render_two_panes(term, state, state.artists, state.entries, layout)
    elif state.page == "playlists":
        render_two_panes(term, state, state.playlist_list, state.playlist_songs, layout)
    elif state.page == "queue":
        render_pane(
            term,
            state.queue,
            0,
            layout["body_y"],
            layout["width"],
            layout["body_height"],
            True,
        )
    else:
        render_log(term, layout)

    if state.picker_kind:
        render_picker(term, state, layout)

    render_footer(term, state, layout)
