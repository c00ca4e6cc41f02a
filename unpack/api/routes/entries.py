"""
Entry API Routes

Saving a capture flow and reading entries back. Every route is scoped to the
caller from X-User-Id.
"""

import logging

from fastapi import APIRouter, Depends, Query

from unpack.api.dependencies import get_capture_session, get_owner_id, get_store, require_entry
from unpack.api.models import (
    CreateEntryRequest,
    CreateEntryResponse,
    EntryListResponse,
    TangentListResponse,
)
from unpack.features.capture.photos import PhotoSet
from unpack.features.capture.pipeline import CaptureSession
from unpack.features.database import JournalStore
from unpack.features.journaling.models import Entry

router = APIRouter(prefix="/entries", tags=["Entries"])
logger = logging.getLogger("Unpack.API.Entries")


@router.post("", response_model=CreateEntryResponse, status_code=201)
async def create_entry(
    request: CreateEntryRequest,
    session: CaptureSession = Depends(get_capture_session),
):
    """
    Save the entry and all of its tangents in one step.

    action="finish" continues into the first tangent; action="exit" returns
    home. Both save the same data.
    """
    session.photos = PhotoSet(request.photo_refs)
    session.restore(request.extracted_text, request.overview, request.tangents)
    outcome = session.finish() if request.action == "finish" else session.exit_early()
    return CreateEntryResponse(
        entry=outcome.entry,
        tangents=outcome.tangents,
        next_step=outcome.next_step,
        next_tangent_id=outcome.next_tangent_id,
    )


@router.get("", response_model=EntryListResponse)
async def list_entries(
    limit: int = Query(default=50, ge=1, le=100),
    owner_id: str = Depends(get_owner_id),
    store: JournalStore = Depends(get_store),
):
    """The caller's entries, newest first."""
    return EntryListResponse(entries=store.list_entries(owner_id, limit=limit))


@router.get("/{entry_id}", response_model=Entry)
async def get_entry(
    entry_id: str,
    owner_id: str = Depends(get_owner_id),
    store: JournalStore = Depends(get_store),
):
    return require_entry(store, entry_id, owner_id)


@router.get("/{entry_id}/tangents", response_model=TangentListResponse)
async def list_entry_tangents(
    entry_id: str,
    owner_id: str = Depends(get_owner_id),
    store: JournalStore = Depends(get_store),
):
    require_entry(store, entry_id, owner_id)
    return TangentListResponse(tangents=store.list_tangents(entry_id))
