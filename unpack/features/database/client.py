"""
Database Client - Journal store backends.

SupabaseJournalStore delegates to the focused repository classes. Which store
the service uses is decided once by `get_journal_store()` from STORE_BACKEND.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from unpack.core.config import settings
from unpack.features.conversation.messages import Message
from unpack.features.database.base import DEFAULT_ENTRY_PAGE_SIZE, JournalStore
from unpack.features.database.memory import InMemoryJournalStore
from unpack.features.database.repositories import (
    EntriesRepository,
    MessagesRepository,
    TangentsRepository,
)
from unpack.features.journaling.models import Entry, Tangent
from unpack.shared.errors import NotFound, PersistenceFailure

logger = logging.getLogger("Unpack.Database")

STORE_BACKENDS = ("supabase", "memory")


class SupabaseJournalStore(JournalStore):
    """
    Journal store on Supabase tables.

    Usage:
        store = SupabaseJournalStore(get_supabase())
        entry = store.get_entry(entry_id)
    """

    def __init__(self, client):
        self._client = client
        self.entries = EntriesRepository(client)
        self.tangents = TangentsRepository(client)
        self.messages = MessagesRepository(client)
        logger.info("Supabase journal store initialized")

    @property
    def client(self):
        """Direct access to Supabase client for advanced queries."""
        return self._client

    def get_entry(self, entry_id: str) -> Optional[Entry]:
        try:
            return self.entries.get(entry_id)
        except Exception as exc:
            logger.error(f"Failed to load entry {entry_id}: {exc}")
            raise PersistenceFailure("Could not load entry", entry_id=entry_id) from exc

    def list_entries(self, owner_id: str, limit: int = DEFAULT_ENTRY_PAGE_SIZE) -> List[Entry]:
        try:
            return self.entries.list_for_owner(owner_id, limit)
        except Exception as exc:
            logger.error(f"Failed to list entries: {exc}")
            raise PersistenceFailure("Could not load entries") from exc

    def get_tangent(self, tangent_id: str) -> Optional[Tangent]:
        try:
            return self.tangents.get(tangent_id)
        except Exception as exc:
            logger.error(f"Failed to load tangent {tangent_id}: {exc}")
            raise PersistenceFailure("Could not load tangent", tangent_id=tangent_id) from exc

    def list_tangents(self, entry_id: str) -> List[Tangent]:
        try:
            return self.tangents.list_for_entry(entry_id)
        except Exception as exc:
            logger.error(f"Failed to list tangents for entry {entry_id}: {exc}")
            raise PersistenceFailure("Could not load tangents", entry_id=entry_id) from exc

    def mark_interacted(self, tangent_id: str) -> Tangent:
        try:
            tangent = self.tangents.mark_interacted(tangent_id)
        except Exception as exc:
            logger.error(f"Failed to mark tangent {tangent_id} interacted: {exc}")
            raise PersistenceFailure("Could not update tangent", tangent_id=tangent_id) from exc
        if tangent is None:
            raise NotFound("Tangent not found", tangent_id=tangent_id)
        return tangent

    def add_message(self, message: Message) -> Message:
        try:
            return self.messages.insert(message)
        except Exception as exc:
            logger.error(f"Failed to store message for tangent {message.tangent_id}: {exc}")
            raise PersistenceFailure("Could not save message", tangent_id=message.tangent_id) from exc

    def list_messages(self, tangent_id: str) -> List[Message]:
        try:
            return self.messages.list_for_tangent(tangent_id)
        except Exception as exc:
            logger.error(f"Failed to load messages for tangent {tangent_id}: {exc}")
            raise PersistenceFailure("Could not load messages", tangent_id=tangent_id) from exc

    def _insert_entry(self, entry: Entry) -> None:
        self.entries.insert(entry)

    def _insert_tangents(self, tangents: List[Tangent]) -> None:
        self.tangents.insert_many(tangents)

    def _delete_entry(self, entry_id: str) -> None:
        self.entries.delete(entry_id)

    def _delete_messages(self, tangent_id: str) -> None:
        self.messages.delete_for_tangent(tangent_id)

    def _delete_tangent(self, tangent_id: str) -> None:
        self.tangents.delete(tangent_id)


@lru_cache(maxsize=1)
def get_journal_store() -> JournalStore:
    """Get the singleton journal store for the configured backend."""
    backend = settings.STORE_BACKEND
    if backend == "memory":
        logger.warning("Using in-memory journal store; entries will not survive a restart")
        return InMemoryJournalStore()
    if backend == "supabase":
        from unpack.core.database import get_supabase

        return SupabaseJournalStore(get_supabase())
    raise ValueError(f"Unknown STORE_BACKEND '{backend}', expected one of {STORE_BACKENDS}")
