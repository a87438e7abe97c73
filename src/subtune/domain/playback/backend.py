"""
Audio backend contract and the messages it posts to the event loop.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol


class EventKind(Enum):
    """Backend notifications the playback core distinguishes."""

    START_FILE = "start-file"
    END_FILE = "end-file"
    IDLE = "idle"
    PROPERTY_CHANGE = "property-change"
    NONE = "none"


@dataclass(frozen=True)
class BackendEvent:
    """One asynchronous notification from the audio backend.

    ``raw`` carries the backend's original payload, e.g. the end-file reason.
    """

    kind: EventKind
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def reason(self) -> Optional[str]:
        return self.raw.get("reason")


def event_from_mpv(message: Dict[str, Any]) -> BackendEvent:
    """Map an mpv JSON IPC event message onto a BackendEvent."""
    name = message.get("event")
    if name == "start-file":
        return BackendEvent(EventKind.START_FILE, message)
    if name == "end-file":
        return BackendEvent(EventKind.END_FILE, message)
    if name == "idle":
        return BackendEvent(EventKind.IDLE, message)
    if name == "property-change":
        return BackendEvent(EventKind.PROPERTY_CHANGE, message)
    return BackendEvent(EventKind.NONE, message)


class PlaybackBackend(Protocol):
    """Commands the player issues to the audio engine.

    Every method may raise BackendCommandFailed.
    """

    def load(self, uri: str) -> None: ...

    def stop(self) -> None: ...

    def toggle_pause(self) -> None: ...

    def seek(self, delta_seconds: float) -> None: ...

    def get_property(self, name: str) -> Any: ...

    def set_property(self, name: str, value: Any) -> None: ...

    def observe_property(self, name: str) -> None: ...

    def terminate(self) -> None: ...
