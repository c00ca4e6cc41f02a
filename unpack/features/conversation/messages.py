"""
Chat message records.

`Message` is what the store keeps. A conversation's visible history holds
`PendingMessage` (shown optimistically, not yet saved) and `ConfirmedMessage`
(saved) entries; both carry the client-generated `correlation_id` used to
swap one for the other.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field

from unpack.features.journaling.models import new_id, utcnow

MessageRole = Literal["user", "ai"]


class Message(BaseModel):
    """A persisted chat message."""
    id: str = Field(default_factory=new_id)
    tangent_id: str
    role: MessageRole
    content: str
    created_at: datetime = Field(default_factory=utcnow)


class PendingMessage(BaseModel):
    status: Literal["pending"] = "pending"
    correlation_id: str = Field(default_factory=new_id)
    tangent_id: str
    role: MessageRole
    content: str
    created_at: datetime = Field(default_factory=utcnow)


class ConfirmedMessage(BaseModel):
    status: Literal["confirmed"] = "confirmed"
    correlation_id: str
    id: str
    tangent_id: str
    role: MessageRole
    content: str
    created_at: datetime

    @classmethod
    def from_message(cls, message: Message, correlation_id: str = "") -> "ConfirmedMessage":
        return cls(
            correlation_id=correlation_id or message.id,
            id=message.id,
            tangent_id=message.tangent_id,
            role=message.role,
            content=message.content,
            created_at=message.created_at,
        )


HistoryItem = Annotated[Union[PendingMessage, ConfirmedMessage], Field(discriminator="status")]


def to_model_roles(history: List[HistoryItem]) -> List[dict]:
    """History as OpenAI chat messages ("ai" becomes "assistant")."""
    return [
        {"role": "assistant" if item.role == "ai" else "user", "content": item.content}
        for item in history
    ]
