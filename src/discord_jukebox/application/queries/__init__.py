"""
Application Queries (CQRS Read Side)

Query objects and handlers for read operations.
Queries do not modify state, only retrieve data.
"""

from discord_jukebox.application.queries.get_queue import GetQueueQuery, QueueSnapshot

__all__ = [
    "GetQueueQuery",
    "QueueSnapshot",
]
