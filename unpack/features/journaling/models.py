"""Entry and tangent records shared by the capture pipeline, store and API."""

import uuid
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field, field_validator

# Plutchik's eight primary emotions. Tangents may also carry a named
# combination (e.g. "love", "optimism") or the "reflection" fallback tag.
PLUTCHIK_PRIMARY_EMOTIONS = (
    "joy",
    "trust",
    "fear",
    "surprise",
    "sadness",
    "disgust",
    "anger",
    "anticipation",
)

MAX_TANGENTS_PER_ENTRY = 5


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TangentCandidate(BaseModel):
    """A discovered thread, before it is saved."""
    name: str
    emotion: str
    excerpt: str = ""

    @field_validator("name", "emotion")
    @classmethod
    def _required(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("emotion")
    @classmethod
    def _lowercase_emotion(cls, value: str) -> str:
        return value.lower()

    @field_validator("excerpt", mode="before")
    @classmethod
    def _excerpt_text(cls, value) -> str:
        if value is None:
            return ""
        return str(value).strip()


class Entry(BaseModel):
    """One capture session: photos, their combined text and the overview."""
    id: str = Field(default_factory=new_id)
    owner_id: str
    created_at: datetime = Field(default_factory=utcnow)
    photo_refs: List[str] = Field(default_factory=list)
    extracted_text: str = ""
    overview_text: str = ""


class Tangent(BaseModel):
    """A saved thread of an entry. Only `interacted` changes after creation."""
    id: str = Field(default_factory=new_id)
    entry_id: str
    owner_id: str
    name: str
    emotion: str
    excerpt: str = ""
    interacted: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_candidate(cls, candidate: TangentCandidate, entry: Entry) -> "Tangent":
        return cls(
            entry_id=entry.id,
            owner_id=entry.owner_id,
            name=candidate.name,
            emotion=candidate.emotion,
            excerpt=candidate.excerpt,
            created_at=entry.created_at,
        )
