"""
Journal store interface.

Entries, tangents and messages live behind this interface so the pipeline and
conversation engine never touch a concrete database. Backends implement the
primitive operations; the two multi-step writes (saving an entry with its
tangents, deleting a tangent with its messages) are defined once here so every
backend gets the same all-or-nothing behaviour.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from unpack.features.conversation.messages import Message
from unpack.features.journaling.models import Entry, Tangent
from unpack.shared.errors import NotFound, PersistenceFailure

logger = logging.getLogger("Unpack.Database")

DEFAULT_ENTRY_PAGE_SIZE = 50


class JournalStore(ABC):
    """Persistence for entries, tangents and chat messages."""

    # ------------------------------------------------------------------
    # Composite writes
    # ------------------------------------------------------------------

    def create_entry_with_tangents(
        self,
        entry: Entry,
        tangents: Sequence[Tangent],
    ) -> Tuple[Entry, List[Tangent]]:
        """
        Save an entry and all of its tangents, or neither.

        If the tangents cannot be written the entry is removed again before
        the error is raised.

        Raises:
            PersistenceFailure: nothing was saved
        """
        try:
            self._insert_entry(entry)
        except Exception as exc:
            logger.error(f"Failed to create entry {entry.id}: {exc}")
            raise PersistenceFailure("Could not save your entry", entry_id=entry.id) from exc

        try:
            self._insert_tangents(list(tangents))
        except Exception as exc:
            logger.error(f"Failed to create tangents for entry {entry.id}, rolling back: {exc}")
            try:
                self._delete_entry(entry.id)
            except Exception:
                logger.exception(f"Rollback of entry {entry.id} failed")
            raise PersistenceFailure("Could not save your entry", entry_id=entry.id) from exc

        logger.info(f"Entry {entry.id} saved with {len(tangents)} tangents")
        return entry, list(tangents)

    def delete_tangent(self, tangent_id: str) -> None:
        """
        Delete a tangent and its whole conversation.

        The tangent row goes first so it is never readable with a partial
        history. If its messages then cannot be removed the tangent is put
        back, leaving it untouched with its history intact.

        Raises:
            NotFound: no such tangent
            PersistenceFailure: delete did not complete
        """
        tangent = self.get_tangent(tangent_id)
        if tangent is None:
            raise NotFound("Tangent not found", tangent_id=tangent_id)

        try:
            self._delete_tangent(tangent_id)
        except Exception as exc:
            logger.error(f"Failed to delete tangent {tangent_id}: {exc}")
            raise PersistenceFailure("Could not delete tangent", tangent_id=tangent_id) from exc

        try:
            self._delete_messages(tangent_id)
        except Exception as exc:
            logger.error(f"Failed to delete messages of tangent {tangent_id}, restoring it: {exc}")
            try:
                self._insert_tangents([tangent])
            except Exception:
                logger.exception(f"Restore of tangent {tangent_id} failed")
            raise PersistenceFailure("Could not delete tangent", tangent_id=tangent_id) from exc

        logger.info(f"Tangent {tangent_id} deleted with its messages")

    # ------------------------------------------------------------------
    # Reads and single-record writes
    # ------------------------------------------------------------------

    @abstractmethod
    def get_entry(self, entry_id: str) -> Optional[Entry]:
        ...

    @abstractmethod
    def list_entries(self, owner_id: str, limit: int = DEFAULT_ENTRY_PAGE_SIZE) -> List[Entry]:
        """Entries of `owner_id`, newest first."""

    @abstractmethod
    def get_tangent(self, tangent_id: str) -> Optional[Tangent]:
        ...

    @abstractmethod
    def list_tangents(self, entry_id: str) -> List[Tangent]:
        """Tangents of an entry in creation order."""

    @abstractmethod
    def mark_interacted(self, tangent_id: str) -> Tangent:
        """Set `interacted` (never cleared again) and return the tangent."""

    @abstractmethod
    def add_message(self, message: Message) -> Message:
        ...

    @abstractmethod
    def list_messages(self, tangent_id: str) -> List[Message]:
        """Messages of a tangent, oldest first."""

    # ------------------------------------------------------------------
    # Backend primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def _insert_entry(self, entry: Entry) -> None:
        ...

    @abstractmethod
    def _insert_tangents(self, tangents: List[Tangent]) -> None:
        ...

    @abstractmethod
    def _delete_entry(self, entry_id: str) -> None:
        ...

    @abstractmethod
    def _delete_messages(self, tangent_id: str) -> None:
        ...

    @abstractmethod
    def _delete_tangent(self, tangent_id: str) -> None:
        ...
