from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from unpack.core.config import settings
from unpack.features.capture.pipeline import CaptureSession
from unpack.features.conversation.base import Responder
from unpack.features.conversation.engine import ConversationEngine
from unpack.features.conversation.responders import build_responder
from unpack.features.database import JournalStore, get_journal_store
from unpack.features.extraction.ocr import VisionExtractor
from unpack.features.journaling.models import Entry, Tangent
from unpack.features.journaling.overview import OverviewGenerator
from unpack.features.journaling.tangents import TangentDiscoverer
from unpack.services.storage import PhotoStorage, get_photo_storage
from unpack.shared.errors import Forbidden, NotFound, ServiceUnavailable, Unauthorized


def get_store() -> JournalStore:
    """Provide the journal store for request handlers."""
    return get_journal_store()


@lru_cache(maxsize=1)
def get_responder() -> Responder:
    """Provide the responder chosen from RESPONDER_MODE at startup."""
    return build_responder()


@lru_cache(maxsize=1)
def get_conversation_engine() -> ConversationEngine:
    """Provide a singleton conversation engine; it owns the per-tangent locks."""
    return ConversationEngine(get_journal_store(), get_responder())


@lru_cache(maxsize=1)
def get_extractor() -> VisionExtractor:
    return VisionExtractor()


@lru_cache(maxsize=1)
def get_overview_generator() -> OverviewGenerator:
    return OverviewGenerator()


@lru_cache(maxsize=1)
def get_discoverer() -> TangentDiscoverer:
    return TangentDiscoverer()


def get_storage() -> PhotoStorage:
    """Provide photo storage; only available with a Supabase backend."""
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise ServiceUnavailable("Photo storage is not configured")
    return get_photo_storage()


def get_owner_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity from the X-User-Id header."""
    if not x_user_id or not x_user_id.strip():
        raise Unauthorized("X-User-Id header is required")
    return x_user_id.strip()


def get_capture_session(
    owner_id: str = Depends(get_owner_id),
    store: JournalStore = Depends(get_store),
    extractor: VisionExtractor = Depends(get_extractor),
    overview_generator: OverviewGenerator = Depends(get_overview_generator),
    discoverer: TangentDiscoverer = Depends(get_discoverer),
) -> CaptureSession:
    """A fresh capture session for this request."""
    return CaptureSession(
        owner_id=owner_id,
        store=store,
        extractor=extractor,
        overview_generator=overview_generator,
        discoverer=discoverer,
    )


def require_entry(store: JournalStore, entry_id: str, owner_id: str) -> Entry:
    entry = store.get_entry(entry_id)
    if entry is None:
        raise NotFound("Entry not found", entry_id=entry_id)
    if entry.owner_id != owner_id:
        raise Forbidden("This entry belongs to someone else", entry_id=entry_id)
    return entry


def require_tangent(store: JournalStore, tangent_id: str, owner_id: str) -> Tangent:
    tangent = store.get_tangent(tangent_id)
    if tangent is None:
        raise NotFound("Tangent not found", tangent_id=tangent_id)
    if tangent.owner_id != owner_id:
        raise Forbidden("This tangent belongs to someone else", tangent_id=tangent_id)
    return tangent
