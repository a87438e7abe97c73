"""Tests for the playback event loop."""

import threading

import pytest

from subtune.domain.library import Track
from subtune.domain.playback import (
    BackendEvent,
    EventKind,
    EventLoop,
    Player,
    ScrobbleScheduler,
    ScrobbleTick,
    StatusLine,
)

START = BackendEvent(EventKind.START_FILE, {"event": "start-file"})
EOF = BackendEvent(EventKind.END_FILE, {"event": "end-file", "reason": "eof"})

LONG = Track(id="long", uri="uri-long", title="Long", duration=180)
SHORT = Track(id="short", uri="uri-short", title="Short", duration=20)


@pytest.fixture
def loop(backend, catalog, inbox, timers) -> EventLoop:
    player = Player(backend)
    player.append_many([LONG, SHORT])
    scheduler = ScrobbleScheduler(inbox, timer_factory=timers)
    return EventLoop(
        player, backend, inbox, scheduler, catalog=catalog, scrobble_enabled=True
    )


class TestStartAndEnd:
    """Backend events drive the player and the scrobble timer."""

    def test_start_file_submits_now_playing_and_arms(self, loop, catalog, timers):
        loop.player.play(0)

        assert loop.process(START) is True

        assert catalog.now_playing == ["long"]
        assert timers.timers[0].interval == 90

    def test_track_change_voids_previous_scrobble(self, loop, catalog, timers, inbox):
        loop.player.play(0)
        loop.process(START)
        stale = ScrobbleTick(loop.scheduler.generation, "long")

        assert loop.process(EOF) is True
        assert loop.player.current_track() == SHORT
        assert loop.process(START) is True

        # The 20 second track never qualifies, and the old timer is void
        assert timers.timers[0].cancelled is True
        assert len(timers.timers) == 1
        assert loop.process(stale) is False
        assert catalog.scrobbles == []
        assert catalog.now_playing == ["long", "short"]

    def test_natural_end_advances_and_arms_next_track(self, backend, catalog, inbox, timers):
        first = Track(id="a", uri="uri-a", title="A", duration=30)
        second = Track(id="b", uri="uri-b", title="B", duration=40)
        player = Player(backend)
        player.append_many([first, second])
        loop = EventLoop(
            player,
            backend,
            inbox,
            ScrobbleScheduler(inbox, timer_factory=timers),
            catalog=catalog,
            scrobble_enabled=True,
        )
        player.play(0)
        loop.process(START)
        assert player.replace_in_progress is False
        assert timers.timers == []

        assert loop.process(EOF) is True

        assert player.current_index == 1
        assert backend.calls[-1] == ("load", "uri-b")
        assert player.replace_in_progress is True

        assert loop.process(START) is True

        assert player.replace_in_progress is False
        assert len(timers.timers) == 1
        assert timers.timers[0].interval == 20
        assert catalog.now_playing == ["a", "b"]

    def test_end_file_during_replace_is_ignored(self, loop):
        updates = []
        loop.on_update = lambda snapshot, status: updates.append(snapshot)
        loop.player.play(0)

        assert loop.process(EOF) is False
        assert loop.player.current_index == 0
        assert updates == []

    def test_scrobbling_disabled(self, loop, catalog, timers):
        loop.scrobble_enabled = False
        loop.player.play(0)

        loop.process(START)

        assert catalog.now_playing == []
        assert timers.timers == []

    def test_now_playing_failure_is_logged(self, loop, catalog, timers):
        catalog.fail.add("nowPlaying")
        loop.player.play(0)

        assert loop.process(START) is True
        assert len(timers.timers) == 1

    @pytest.mark.parametrize("kind", [EventKind.IDLE, EventKind.PROPERTY_CHANGE, EventKind.NONE])
    def test_other_events_are_ignored(self, loop, kind):
        assert loop.process(BackendEvent(kind, {})) is False

    def test_unknown_message_is_ignored(self, loop):
        assert loop.process("hello") is False


class TestScrobbleTicks:
    """A tick scrobbles only if it is current and playback is running."""

    def test_current_tick_scrobbles(self, loop, catalog, timers, inbox):
        loop.player.play(0)
        loop.process(START)
        timers.timers[0].fire()

        assert loop.process(inbox.get_nowait()) is True
        assert catalog.scrobbles == ["long"]

    def test_tick_while_paused_is_dropped(self, loop, catalog, timers, inbox):
        loop.player.play(0)
        loop.process(START)
        loop.player.pause()
        timers.timers[0].fire()

        assert loop.process(inbox.get_nowait()) is False
        assert catalog.scrobbles == []

    def test_scrobble_failure_is_logged(self, loop, catalog, timers, inbox):
        catalog.fail.add("scrobble")
        loop.player.play(0)
        loop.process(START)
        timers.timers[0].fire()

        assert loop.process(inbox.get_nowait()) is True
        assert catalog.scrobbles == []


class TestStatus:
    """Status reads fall back to zero on failure."""

    def test_poll_status_reads_backend(self, loop, backend):
        backend.properties.update({"volume": 70, "time-pos": 12.5, "duration": 200.0})

        assert loop.poll_status() == StatusLine(70, 12.5, 200.0)

    def test_failed_or_missing_reads_are_zero(self, loop, backend):
        backend.fail_properties.add("time-pos")
        backend.properties["duration"] = None

        status = loop.poll_status()

        assert status.position == 0
        assert status.duration == 0
        assert status.volume == 50

    def test_handled_message_publishes_update(self, loop):
        updates = []
        loop.on_update = lambda snapshot, status: updates.append((snapshot, status))
        loop.player.play(0)

        loop.process(START)

        snapshot, status = updates[-1]
        assert snapshot.current_track == LONG
        assert snapshot.replace_in_progress is False
        assert isinstance(status, StatusLine)


class TestThread:
    """The loop runs on its own thread until the shutdown sentinel."""

    def test_start_processes_messages_and_stops(self, loop, inbox):
        seen = threading.Event()
        loop.on_update = lambda snapshot, status: seen.set()
        loop.player.play(0)

        loop.start()
        inbox.put(START)

        assert seen.wait(timeout=2.0)
        thread = loop.thread
        loop.stop()
        assert loop.thread is None
        assert not thread.is_alive()

    def test_handler_errors_do_not_kill_loop(self, loop, inbox):
        seen = threading.Event()

        def on_update(snapshot, status):
            if not seen.is_set():
                seen.set()
                raise RuntimeError("render failed")

        loop.on_update = on_update
        loop.player.play(0)
        loop.start()
        inbox.put(START)

        assert seen.wait(timeout=2.0)
        assert loop.thread.is_alive()
        loop.stop()
