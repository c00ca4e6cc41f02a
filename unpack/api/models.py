from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from unpack.features.capture.pipeline import CaptureRoute, NextStep
from unpack.features.conversation.engine import ConversationState
from unpack.features.conversation.messages import ConfirmedMessage, HistoryItem
from unpack.features.extraction.ocr import ExtractionResult, PageImage
from unpack.features.journaling.models import MAX_TANGENTS_PER_ENTRY, Entry, Tangent, TangentCandidate

# =========================================================================
# PHOTOS
# =========================================================================

class PhotoUploadResponse(BaseModel):
    key: str
    url: str

# =========================================================================
# CAPTURE MODELS
# =========================================================================

class ExtractRequest(BaseModel):
    pages: List[PageImage] = Field(..., min_length=1)

class ExtractResponse(BaseModel):
    pages: List[ExtractionResult]
    text: str
    confidence: float
    route: CaptureRoute

class EntryTextRequest(BaseModel):
    text: str = Field(..., min_length=1)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)  # from /capture/extract
    reviewed: bool = False

class OverviewResponse(BaseModel):
    overview: str

class TangentCandidatesResponse(BaseModel):
    tangents: List[TangentCandidate]

# =========================================================================
# ENTRY MODELS
# =========================================================================

class CreateEntryRequest(BaseModel):
    action: Literal["finish", "exit"] = "finish"
    photo_refs: List[str] = Field(default_factory=list)
    extracted_text: str = Field(..., min_length=1)
    overview: str
    tangents: List[TangentCandidate] = Field(default_factory=list, max_length=MAX_TANGENTS_PER_ENTRY)

class CreateEntryResponse(BaseModel):
    entry: Entry
    tangents: List[Tangent]
    next_step: NextStep
    next_tangent_id: Optional[str] = None

class EntryListResponse(BaseModel):
    entries: List[Entry]

class TangentListResponse(BaseModel):
    tangents: List[Tangent]

# =========================================================================
# CONVERSATION MODELS
# =========================================================================

class ConversationResponse(BaseModel):
    tangent: Tangent
    state: ConversationState
    messages: List[HistoryItem]

class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1)
    correlation_id: Optional[str] = None  # client-generated, echoed on the confirmed message

class TurnResponse(BaseModel):
    reply: ConfirmedMessage
    messages: List[HistoryItem]
