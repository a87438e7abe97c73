"""Playback-specific exceptions for error handling."""


class PlaybackError(Exception):
    """Base exception for playback operations."""

    pass


class IndexOutOfRange(PlaybackError, IndexError):
    """Raised when a queue or playlist index supplied by a caller is invalid."""

    def __init__(self, index: int, length: int, what: str = "track"):
        self.index = index
        self.length = length
        super().__init__(f"{what} index {index} out of range (length {length})")


class BackendCommandFailed(PlaybackError):
    """Raised when the audio backend rejects or fails a command or property access."""

    def __init__(self, command: str, message: str):
        self.command = command
        self.message = message
        super().__init__(f"{command}: {message}")


class BackendStartError(PlaybackError):
    """Raised when the audio backend process cannot be started."""

    pass
