"""
Capture API Routes

The capture flow, one step per request:

1. POST /capture/extract   - page images -> text, confidence, route
2. POST /capture/overview  - (reviewed) text -> overview
3. POST /capture/tangents  - text -> tangent candidates

Saving the result is POST /entries. A client that disconnects mid-step
cancels the step and its pending model calls.
"""

import logging

from fastapi import APIRouter, Depends, Request

from unpack.api.dependencies import get_capture_session
from unpack.api.models import (
    EntryTextRequest,
    ExtractRequest,
    ExtractResponse,
    OverviewResponse,
    TangentCandidatesResponse,
)
from unpack.features.capture.pipeline import CaptureSession

router = APIRouter(prefix="/capture", tags=["Capture"])
logger = logging.getLogger("Unpack.API.Capture")


@router.post("/extract", response_model=ExtractResponse)
async def extract_pages(
    request: ExtractRequest,
    http_request: Request,
    session: CaptureSession = Depends(get_capture_session),
):
    """
    Read handwriting from every page.

    `route` is "manual_review" when the mean confidence is below the
    threshold; the client should let the user correct the text first.
    """
    result = await session.watch(session.extract(request.pages), http_request.is_disconnected)
    return ExtractResponse(
        pages=result.pages,
        text=result.text,
        confidence=result.confidence,
        route=result.route,
    )


@router.post("/overview", response_model=OverviewResponse)
async def generate_overview(
    request: EntryTextRequest,
    http_request: Request,
    session: CaptureSession = Depends(get_capture_session),
):
    """
    Two or three validating sentences about the entry.

    Send the extraction `confidence` along: text below the review threshold
    is rejected with 400 until `reviewed` is true. Text sent without a
    confidence is trusted as reviewed.
    """
    session.restore(request.text, confidence=request.confidence, reviewed=request.reviewed)
    overview = await session.watch(session.summarize(), http_request.is_disconnected)
    return OverviewResponse(overview=overview)


@router.post("/tangents", response_model=TangentCandidatesResponse)
async def discover_tangents(
    request: EntryTextRequest,
    http_request: Request,
    session: CaptureSession = Depends(get_capture_session),
):
    """One to five emotional threads found in the entry. Same review gate as /overview."""
    session.restore(request.text, confidence=request.confidence, reviewed=request.reviewed)
    candidates = await session.watch(session.discover(), http_request.is_disconnected)
    return TangentCandidatesResponse(tangents=candidates)
