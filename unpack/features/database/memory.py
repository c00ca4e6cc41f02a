"""In-process journal store for offline mode and tests."""

import logging
from typing import Dict, List, Optional

from unpack.features.conversation.messages import Message
from unpack.features.database.base import DEFAULT_ENTRY_PAGE_SIZE, JournalStore
from unpack.features.journaling.models import Entry, Tangent
from unpack.shared.errors import NotFound

logger = logging.getLogger("Unpack.Database.Memory")


class InMemoryJournalStore(JournalStore):
    """Dict-backed store. Contents last as long as the instance."""

    def __init__(self) -> None:
        self._entries: Dict[str, Entry] = {}
        self._tangents: Dict[str, Tangent] = {}
        self._messages: Dict[str, List[Message]] = {}

    def get_entry(self, entry_id: str) -> Optional[Entry]:
        return self._entries.get(entry_id)

    def list_entries(self, owner_id: str, limit: int = DEFAULT_ENTRY_PAGE_SIZE) -> List[Entry]:
        owned = [e for e in self._entries.values() if e.owner_id == owner_id]
        owned.sort(key=lambda e: e.created_at, reverse=True)
        return owned[:limit]

    def get_tangent(self, tangent_id: str) -> Optional[Tangent]:
        return self._tangents.get(tangent_id)

    def list_tangents(self, entry_id: str) -> List[Tangent]:
        return [t for t in self._tangents.values() if t.entry_id == entry_id]

    def mark_interacted(self, tangent_id: str) -> Tangent:
        tangent = self._tangents.get(tangent_id)
        if tangent is None:
            raise NotFound("Tangent not found", tangent_id=tangent_id)
        if not tangent.interacted:
            tangent = tangent.model_copy(update={"interacted": True})
            self._tangents[tangent_id] = tangent
        return tangent

    def add_message(self, message: Message) -> Message:
        if message.tangent_id not in self._tangents:
            raise NotFound("Tangent not found", tangent_id=message.tangent_id)
        self._messages.setdefault(message.tangent_id, []).append(message)
        return message

    def list_messages(self, tangent_id: str) -> List[Message]:
        return sorted(self._messages.get(tangent_id, []), key=lambda m: m.created_at)

    def _insert_entry(self, entry: Entry) -> None:
        self._entries[entry.id] = entry

    def _insert_tangents(self, tangents: List[Tangent]) -> None:
        for tangent in tangents:
            self._tangents[tangent.id] = tangent

    def _delete_entry(self, entry_id: str) -> None:
        self._entries.pop(entry_id, None)

    def _delete_messages(self, tangent_id: str) -> None:
        self._messages.pop(tangent_id, None)

    def _delete_tangent(self, tangent_id: str) -> None:
        self._tangents.pop(tangent_id, None)
