"""
Messages Repository - Chat message data access operations.

Rows live in the `messages` table:
    id, tangent_id, role ('user' | 'ai'), content, created_at
"""

import logging
from typing import Dict, List

from unpack.core.logging_utils import preview
from unpack.features.conversation.messages import Message

logger = logging.getLogger("Unpack.Database.Messages")


def message_to_row(message: Message) -> Dict:
    return {
        "id": message.id,
        "tangent_id": message.tangent_id,
        "role": message.role,
        "content": message.content,
        "created_at": message.created_at.isoformat(),
    }


def row_to_message(row: Dict) -> Message:
    return Message(
        id=row["id"],
        tangent_id=row["tangent_id"],
        role=row["role"],
        content=row["content"],
        created_at=row["created_at"],
    )


class MessagesRepository:
    """Repository for chat message operations."""

    def __init__(self, client):
        """Initialize with Supabase client."""
        self.client = client

    def insert(self, message: Message) -> Message:
        result = self.client.table("messages").insert(message_to_row(message)).execute()
        logger.debug(f"Stored {message.role} message: {preview(message.content, 50)}")
        return row_to_message(result.data[0]) if result.data else message

    def list_for_tangent(self, tangent_id: str) -> List[Message]:
        result = (
            self.client.table("messages")
            .select("*")
            .eq("tangent_id", tangent_id)
            .order("created_at", desc=False)
            .execute()
        )
        return [row_to_message(row) for row in result.data or []]

    def delete_for_tangent(self, tangent_id: str) -> None:
        self.client.table("messages").delete().eq("tangent_id", tangent_id).execute()
