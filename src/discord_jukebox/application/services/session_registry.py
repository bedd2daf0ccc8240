"""Session Registry - exactly one playback session per guild."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...domain.shared.messages import LogTemplates
from .session import GuildSession

if TYPE_CHECKING:
    from ..interfaces.voice_transport import VoiceTransport

logger = logging.getLogger(__name__)

SessionFactory = Callable[[int], GuildSession]


class SessionRegistry:
    """Creates sessions on first access and keeps them for the life of the process."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory
        self._sessions: dict[int, GuildSession] = {}
        self._lock = threading.Lock()

    @classmethod
    def for_transport(
        cls, transport: VoiceTransport, *, idle_timeout_seconds: float
    ) -> SessionRegistry:
        def factory(guild_id: int) -> GuildSession:
            return GuildSession(
                guild_id,
                transport=transport,
                idle_timeout_seconds=idle_timeout_seconds,
            )

        return cls(factory)

    def get(self, guild_id: int) -> GuildSession:
        session = self._sessions.get(guild_id)
        if session is not None:
            return session

        with self._lock:
            session = self._sessions.get(guild_id)
            if session is None:
                session = self._session_factory(guild_id)
                self._sessions[guild_id] = session
                logger.info(LogTemplates.SESSION_CREATED, guild_id)
            return session

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def sessions(self) -> list[GuildSession]:
        with self._lock:
            return list(self._sessions.values())

    async def close(self) -> None:
        """Release every held voice link. Sessions stay registered."""
        sessions = self.sessions()
        logger.info(LogTemplates.REGISTRY_CLOSING, len(sessions))
        for session in sessions:
            await session.close()
