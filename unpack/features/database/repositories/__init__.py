"""Database Repositories - Organized data access."""

from unpack.features.database.repositories.entries import EntriesRepository
from unpack.features.database.repositories.messages import MessagesRepository
from unpack.features.database.repositories.tangents import TangentsRepository

__all__ = [
    "EntriesRepository",
    "TangentsRepository",
    "MessagesRepository",
]
