"""
Scrobble timer.

A track is scrobbled once it has played for half its length or four minutes,
whichever comes first. Tracks of 30 seconds or less are never scrobbled.
The timer thread only posts a ScrobbleTick into the event loop inbox; the
loop decides whether the tick still applies.
"""

import queue
import threading
from typing import Any, Callable, NamedTuple, Optional

from loguru import logger

from ..library.models import Track

# Tracks must be longer than this (seconds) to be scrobbled
MIN_SCROBBLE_DURATION = 30

# Upper bound on the scrobble delay (seconds)
MAX_SCROBBLE_DELAY = 240


class ScrobbleTick(NamedTuple):
    """Posted when a scrobble timer fires."""

    generation: int
    track_id: str


def scrobble_delay(duration: int) -> Optional[int]:
    """Seconds to wait before scrobbling a track, or None if it never qualifies."""
    if duration <= MIN_SCROBBLE_DURATION:
        return None
    return min(duration // 2, MAX_SCROBBLE_DELAY)


class ScrobbleScheduler:
    """Single pending scrobble timer with generation-based invalidation."""

    def __init__(
        self,
        inbox: "queue.Queue[Any]",
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.inbox = inbox
        self.timer_factory = timer_factory
        self.generation = 0
        self._timer: Optional[Any] = None
        self._lock = threading.Lock()

    def arm(self, track: Track) -> bool:
        """Cancel any pending timer and schedule a tick for this track.

        Returns:
            True if a timer was started
        """
        delay = scrobble_delay(track.duration)
        with self._lock:
            self._cancel_locked()
            if delay is None:
                logger.debug(f"Not scrobbling {track.id}: duration {track.duration}s")
                return False

            tick = ScrobbleTick(self.generation, track.id)
            self._timer = self.timer_factory(delay, self.inbox.put, args=(tick,))
            self._timer.daemon = True
            self._timer.start()

        logger.debug(f"Scrobble armed for {track.id} in {delay}s")
        return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        # Bumping the generation also voids a tick already sitting in the inbox
        self.generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def is_current(self, tick: ScrobbleTick) -> bool:
        with self._lock:
            return tick.generation == self.generation
