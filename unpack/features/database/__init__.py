"""
Database Feature Module - Journal persistence.

Usage:
    from unpack.features.database import get_journal_store

    store = get_journal_store()
    entries = store.list_entries(owner_id)
"""

from unpack.features.database.base import JournalStore
from unpack.features.database.client import SupabaseJournalStore, get_journal_store
from unpack.features.database.memory import InMemoryJournalStore

__all__ = [
    "JournalStore",
    "InMemoryJournalStore",
    "SupabaseJournalStore",
    "get_journal_store",
]
