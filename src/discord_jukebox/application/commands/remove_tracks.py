"""
Remove Tracks Command

Command and handler for removing one position (``3``) or an inclusive
range (``5-7``) from a guild's queue.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from discord_jukebox.domain.music.entities import QueuedTrack
from discord_jukebox.domain.shared.exceptions import QueueRangeError, TransportError
from discord_jukebox.domain.shared.messages import UIMessages
from discord_jukebox.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.session_registry import SessionRegistry

SELECTION_PATTERN = re.compile(r"^(\d+)-(\d+)$|^(\d+)$")


class RemoveTracksStatus(Enum):
    """Status codes for remove results."""

    REMOVED = "removed"
    MISSING_ARGUMENT = "missing_argument"
    BAD_FORMAT = "bad_format"
    POSITION_TOO_LOW = "position_too_low"
    OUT_OF_RANGE = "out_of_range"
    BACKWARDS = "backwards"
    VOICE_ERROR = "voice_error"


class RemoveTracksCommand(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    selection: str = ""


class RemoveTracksResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: RemoveTracksStatus
    message: str
    removed: list[QueuedTrack] = Field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.status == RemoveTracksStatus.REMOVED

    @classmethod
    def error(cls, status: RemoveTracksStatus, message: str) -> RemoveTracksResult:
        return cls(status=status, message=message)


def parse_selection(selection: str) -> tuple[int, int] | None:
    """Parse ``"n"`` or ``"a-b"`` into an inclusive ``(start, end)`` pair."""
    match = SELECTION_PATTERN.match(selection.strip())
    if match is None:
        return None

    single = match.group(3)
    if single is not None:
        position = int(single)
        return position, position
    return int(match.group(1)), int(match.group(2))


class RemoveTracksHandler:
    """Validates a user's selection against the queue before removing it."""

    def __init__(self, *, session_registry: SessionRegistry) -> None:
        self._registry = session_registry

    async def handle(self, command: RemoveTracksCommand) -> RemoveTracksResult:
        if not command.selection.strip():
            return RemoveTracksResult.error(
                RemoveTracksStatus.MISSING_ARGUMENT, UIMessages.REMOVE_MISSING_ARGUMENT
            )

        bounds = parse_selection(command.selection)
        if bounds is None:
            return RemoveTracksResult.error(
                RemoveTracksStatus.BAD_FORMAT, UIMessages.REMOVE_BAD_FORMAT
            )

        start, end = bounds
        session = self._registry.get(command.guild_id)

        if start < 1:
            return RemoveTracksResult.error(
                RemoveTracksStatus.POSITION_TOO_LOW, UIMessages.REMOVE_POSITION_TOO_LOW
            )
        if end > session.queue_size():
            return RemoveTracksResult.error(
                RemoveTracksStatus.OUT_OF_RANGE, UIMessages.REMOVE_OUT_OF_RANGE
            )
        if start > end:
            return RemoveTracksResult.error(
                RemoveTracksStatus.BACKWARDS, UIMessages.REMOVE_BACKWARDS
            )

        try:
            removed = await session.remove_range(start, end - start + 1)
        except QueueRangeError:
            # The queue shrank between the check above and the removal.
            return RemoveTracksResult.error(
                RemoveTracksStatus.OUT_OF_RANGE, UIMessages.REMOVE_OUT_OF_RANGE
            )
        except TransportError as exc:
            # The tracks are gone but the stream could not move on to the next one.
            return RemoveTracksResult.error(
                RemoveTracksStatus.VOICE_ERROR, UIMessages.VOICE_ERROR.format(error=exc.message)
            )

        return RemoveTracksResult(
            status=RemoveTracksStatus.REMOVED, message=UIMessages.REMOVE_DONE, removed=removed
        )
