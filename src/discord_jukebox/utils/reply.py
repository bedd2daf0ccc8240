"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from functools import cache

from discord_jukebox.domain.shared.messages import UIMessages


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def error_text(message: str) -> str:
    """Prefix a user-facing failure the way every error reply is shown."""
    return UIMessages.ERROR_PREFIX.format(message=message)
