"""Tests for row and status text formatting."""

from unittest.mock import MagicMock

import pytest

from subtune.domain.catalog import Entity
from subtune.domain.library import Track
from subtune.domain.playback import StatusLine
from subtune.ui.helpers.scrolling import (
    calculate_scroll_offset,
    clamp_selection,
    move_selection,
)
from subtune.ui.helpers.terminal import write_at
from subtune.ui.styles.formatting import (
    entity_row_text,
    format_player_status,
    format_time,
    queue_row_text,
    truncate,
)


class TestFormatTime:
    @pytest.mark.parametrize(
        "seconds, expected",
        [(0, "00:00"), (5.9, "00:05"), (65, "01:05"), (3600, "60:00"), (-3, "00:00")],
    )
    def test_format_time(self, seconds, expected):
        assert format_time(seconds) == expected


class TestStatusLine:
    def test_status_line(self):
        assert format_player_status(StatusLine(55.0, 65.2, 210.0)) == "[55%][01:05/03:30]"

    def test_failed_reads_show_zero(self):
        assert format_player_status(StatusLine()) == "[0%][00:00/00:00]"


class TestRowText:
    """Queue and browser rows."""

    def test_queue_row(self):
        track = Track(id="1", uri="u", title="Waterloo", artist="ABBA", duration=167)

        assert queue_row_text(track, starred=False) == "  Waterloo - ABBA - 02:47"
        assert queue_row_text(track, starred=True, current=True) == "▶ Waterloo - ABBA - 02:47 ♥"

    def test_directory_row_in_brackets(self):
        assert entity_row_text(Entity(id="d", is_dir=True, title="Arrival"), False) == "[Arrival]"

    def test_song_row_falls_back_to_file_name(self):
        entity = Entity(id="s", path="ABBA/Arrival/track.flac")
        assert entity_row_text(entity, starred=True) == "track.flac ♥"

    @pytest.mark.parametrize(
        "text, width, expected",
        [("hello", 10, "hello"), ("hello", 5, "hello"), ("hello", 4, "hel…"), ("hello", 1, "…"), ("hello", 0, "")],
    )
    def test_truncate(self, text, width, expected):
        assert truncate(text, width) == expected


class TestScrolling:
    """Scroll offsets and clamped selection."""

    def test_no_scroll_when_everything_fits(self):
        assert calculate_scroll_offset(4, 3, 10, 5) == 0

    def test_scroll_follows_selection_down(self):
        assert calculate_scroll_offset(15, 0, 10, 20) == 6

    def test_scroll_follows_selection_up(self):
        assert calculate_scroll_offset(2, 10, 10, 20) == 2

    def test_scroll_kept_when_visible(self):
        assert calculate_scroll_offset(7, 5, 10, 20) == 5

    def test_move_selection_clamps(self):
        assert move_selection(0, -1, 5) == 0
        assert move_selection(4, 1, 5) == 4
        assert move_selection(2, 1, 5) == 3

    def test_move_selection_wraps(self):
        assert move_selection(4, 1, 5, wrap=True) == 0
        assert move_selection(0, -1, 5, wrap=True) == 4

    def test_empty_list(self):
        assert move_selection(3, 1, 0) == 0
        assert clamp_selection(3, 0) == 0


class TestWriteAt:
    """Positioned writes, clearing the line unless told not to."""

    def test_clears_to_end_of_line_by_default(self, capsys):
        term = MagicMock(clear_eol="<eol>")
        term.move_xy.return_value = "<3,1>"

        write_at(term, 3, 1, "hello")

        term.move_xy.assert_called_once_with(3, 1)
        assert capsys.readouterr().out == "<3,1><eol>hello"

    def test_pane_writes_keep_the_line(self, capsys):
        term = MagicMock(clear_eol="<eol>")
        term.move_xy.return_value = "<0,2>"

        write_at(term, 0, 2, "row", clear=False)

        assert capsys.readouterr().out == "<0,2>row"
