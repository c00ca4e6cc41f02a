"""
Tangents Repository - Tangent data access operations.

Rows live in the `tangents` table:
    id, entry_id, user_id, name, emotion, excerpt, is_interacted, created_at
"""

import logging
from typing import Dict, List, Optional

from unpack.features.journaling.models import Tangent

logger = logging.getLogger("Unpack.Database.Tangents")


def tangent_to_row(tangent: Tangent) -> Dict:
    return {
        "id": tangent.id,
        "entry_id": tangent.entry_id,
        "user_id": tangent.owner_id,
        "name": tangent.name,
        "emotion": tangent.emotion,
        "excerpt": tangent.excerpt,
        "is_interacted": tangent.interacted,
        "created_at": tangent.created_at.isoformat(),
    }


def row_to_tangent(row: Dict) -> Tangent:
    return Tangent(
        id=row["id"],
        entry_id=row["entry_id"],
        owner_id=row["user_id"],
        name=row["name"],
        emotion=row["emotion"],
        excerpt=row.get("excerpt") or "",
        interacted=bool(row.get("is_interacted")),
        created_at=row["created_at"],
    )


class TangentsRepository:
    """Repository for tangent operations."""

    def __init__(self, client):
        """Initialize with Supabase client."""
        self.client = client

    def insert_many(self, tangents: List[Tangent]) -> None:
        """Single batch insert, so the tangents of an entry land together."""
        if not tangents:
            return
        self.client.table("tangents").insert([tangent_to_row(t) for t in tangents]).execute()
        logger.info(f"Created {len(tangents)} tangents for entry {tangents[0].entry_id}")

    def get(self, tangent_id: str) -> Optional[Tangent]:
        result = self.client.table("tangents").select("*").eq("id", tangent_id).limit(1).execute()
        return row_to_tangent(result.data[0]) if result.data else None

    def list_for_entry(self, entry_id: str) -> List[Tangent]:
        result = (
            self.client.table("tangents")
            .select("*")
            .eq("entry_id", entry_id)
            .order("created_at", desc=False)
            .execute()
        )
        return [row_to_tangent(row) for row in result.data or []]

    def mark_interacted(self, tangent_id: str) -> Optional[Tangent]:
        result = (
            self.client.table("tangents")
            .update({"is_interacted": True})
            .eq("id", tangent_id)
            .execute()
        )
        return row_to_tangent(result.data[0]) if result.data else None

    def delete(self, tangent_id: str) -> None:
        self.client.table("tangents").delete().eq("id", tangent_id).execute()
