"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when caller-supplied input fails validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class QueueRangeError(ValidationError):
    """Raised when a queue position or range falls outside the queue."""

    def __init__(self, start: int, count: int, size: int, message: str | None = None) -> None:
        msg = message or (
            f"Range starting at {start} with {count} track(s) is outside a queue of {size}"
        )
        super().__init__(msg, field="position")
        self.code = "QUEUE_RANGE"
        self.start = start
        self.count = count
        self.size = size


class StateError(DomainError):
    """Raised when an operation is invalid in the session's current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_STATE")
        self.operation = operation
        self.current_state = current_state


class NothingToPlayError(StateError):
    """Raised by play() when the queue holds no tracks."""

    def __init__(self, current_state: str) -> None:
        super().__init__("play", current_state, message="Queue is empty, nothing to play")


class NotPlayingError(StateError):
    """Raised by pause() or skip() while nothing is streaming."""

    def __init__(self, operation: str, current_state: str) -> None:
        super().__init__(operation, current_state, message="Nothing is playing")


class NoHistoryError(StateError):
    """Raised by back() when there is no earlier track to return to."""

    def __init__(self, current_state: str) -> None:
        super().__init__("back", current_state, message="No track to go back to")


class NotConnectedError(StateError):
    """Raised when a streaming operation needs a voice link that is not held."""

    def __init__(self, operation: str, current_state: str) -> None:
        super().__init__(operation, current_state, message="Not connected to a voice channel")


class TransportError(DomainError):
    """Raised when the voice link or an audio stream fails."""

    def __init__(self, message: str, guild_id: int | None = None) -> None:
        super().__init__(message, code="TRANSPORT_ERROR")
        self.guild_id = guild_id
