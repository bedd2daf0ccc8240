"""
Shared Domain Kernel

Contains types and exceptions shared across the domain.
"""

from discord_jukebox.domain.shared.exceptions import (
    DomainError,
    NoHistoryError,
    NotConnectedError,
    NothingToPlayError,
    NotPlayingError,
    QueueRangeError,
    StateError,
    TransportError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "QueueRangeError",
    "StateError",
    "NothingToPlayError",
    "NotPlayingError",
    "NoHistoryError",
    "NotConnectedError",
    "TransportError",
]
