"""
Entries Repository - Entry data access operations.

Rows live in the `entries` table:
    id, user_id, created_at, photo_urls, extracted_text, overview
"""

import logging
from typing import Dict, List, Optional

from unpack.features.journaling.models import Entry

logger = logging.getLogger("Unpack.Database.Entries")


def entry_to_row(entry: Entry) -> Dict:
    return {
        "id": entry.id,
        "user_id": entry.owner_id,
        "created_at": entry.created_at.isoformat(),
        "photo_urls": entry.photo_refs,
        "extracted_text": entry.extracted_text,
        "overview": entry.overview_text,
    }


def row_to_entry(row: Dict) -> Entry:
    return Entry(
        id=row["id"],
        owner_id=row["user_id"],
        created_at=row["created_at"],
        photo_refs=row.get("photo_urls") or [],
        extracted_text=row.get("extracted_text") or "",
        overview_text=row.get("overview") or "",
    )


class EntriesRepository:
    """Repository for entry operations."""

    def __init__(self, client):
        """Initialize with Supabase client."""
        self.client = client

    def insert(self, entry: Entry) -> None:
        self.client.table("entries").insert(entry_to_row(entry)).execute()
        logger.info(f"Entry created: {entry.id}")

    def get(self, entry_id: str) -> Optional[Entry]:
        result = self.client.table("entries").select("*").eq("id", entry_id).limit(1).execute()
        return row_to_entry(result.data[0]) if result.data else None

    def list_for_owner(self, owner_id: str, limit: int) -> List[Entry]:
        result = (
            self.client.table("entries")
            .select("*")
            .eq("user_id", owner_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [row_to_entry(row) for row in result.data or []]

    def delete(self, entry_id: str) -> None:
        self.client.table("entries").delete().eq("id", entry_id).execute()
        logger.info(f"Entry deleted: {entry_id}")
