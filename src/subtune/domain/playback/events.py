"""
Playback event loop.

The single consumer of the inbox that the mpv reader thread and the scrobble
timer post into. Applies backend events to the Player, submits now-playing and
scrobble notifications, and publishes a fresh status line to the UI after every
message it acts on.
"""

import queue
import threading
from typing import Any, Callable, NamedTuple, Optional

from loguru import logger

from ..catalog.client import CatalogService
from ..catalog.exceptions import RemoteCallFailed
from .backend import BackendEvent, EventKind, PlaybackBackend
from .exceptions import BackendCommandFailed
from .player import Player, PlayerSnapshot
from .scrobble import ScrobbleScheduler, ScrobbleTick


class StatusLine(NamedTuple):
    """Backend readings shown in the status bar. Failed reads are 0."""

    volume: float = 0
    position: float = 0
    duration: float = 0


UpdateCallback = Callable[[PlayerSnapshot, StatusLine], None]


class EventLoop:
    """Message-passing loop run on its own daemon thread.

    Messages are BackendEvent, ScrobbleTick, or None to shut down.
    """

    def __init__(
        self,
        player: Player,
        backend: PlaybackBackend,
        inbox: "queue.Queue[Any]",
        scheduler: ScrobbleScheduler,
        catalog: Optional[CatalogService] = None,
        scrobble_enabled: bool = False,
        on_update: Optional[UpdateCallback] = None,
    ):
        self.player = player
        self.backend = backend
        self.inbox = inbox
        self.scheduler = scheduler
        self.catalog = catalog
        self.scrobble_enabled = scrobble_enabled
        self.on_update = on_update
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.thread and self.thread.is_alive():
            return
        self.thread = threading.Thread(
            target=self._run, name="playback-events", daemon=True
        )
        self.thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Post the shutdown sentinel and wait for the loop to exit."""
        self.scheduler.cancel()
        self.inbox.put(None)
        if self.thread and self.thread.is_alive():
            self.thread.join(timeout=timeout)
        self.thread = None

    def _run(self) -> None:
        logger.debug("Event loop started")
        while True:
            message = self.inbox.get()
            if message is None:
                break
            try:
                self.process(message)
            except Exception:
                logger.exception("Event loop error")
        logger.debug("Event loop stopped")

    # ---- message handling ----

    def process(self, message: Any) -> bool:
        """Handle one message. Returns False if it was ignored."""
        if isinstance(message, ScrobbleTick):
            handled = self._handle_tick(message)
        elif isinstance(message, BackendEvent):
            handled = self._handle_event(message)
        else:
            logger.debug(f"Ignoring unknown message: {message!r}")
            handled = False

        if handled:
            self.refresh()
        return handled

    def _handle_event(self, event: BackendEvent) -> bool:
        if event.kind is EventKind.END_FILE:
            return self.player.handle_end_of_file(event)

        if event.kind is EventKind.START_FILE:
            track = self.player.handle_start_of_file()
            self.scheduler.cancel()
            if track is not None and self.scrobble_enabled and self.catalog:
                self._submit(self.catalog.submit_now_playing, "now playing", track.id)
                self.scheduler.arm(track)
            return True

        return False

    def _handle_tick(self, tick: ScrobbleTick) -> bool:
        if not self.scheduler.is_current(tick):
            logger.debug(f"Dropping stale scrobble tick for {tick.track_id}")
            return False
        if not self.player.is_actively_playing():
            return False
        if self.catalog:
            self._submit(self.catalog.submit_scrobble, "scrobble", tick.track_id)
        return True

    def _submit(self, call: Callable[[str], None], operation: str, track_id: str) -> None:
        try:
            call(track_id)
        except RemoteCallFailed as e:
            logger.warning(f"{operation}: {track_id} -- {e}")
        else:
            logger.debug(f"{operation}: {track_id}")

    # ---- status ----

    def _read(self, name: str) -> float:
        try:
            value = self.backend.get_property(name)
        except BackendCommandFailed as e:
            logger.debug(f"Status read {name} failed -- {e}")
            return 0
        return value if isinstance(value, (int, float)) else 0

    def poll_status(self) -> StatusLine:
        return StatusLine(
            volume=self._read("volume"),
            position=self._read("time-pos"),
            duration=self._read("duration"),
        )

    def refresh(self) -> None:
        if self.on_update is None:
            return
        self.on_update(self.player.snapshot(), self.poll_status())
