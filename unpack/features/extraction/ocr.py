"""
Handwritten page extraction.

Sends a photographed journal page to the vision model and scores how much of
it could be read. The model is told to write `[unclear]` for every word it
cannot make out; the confidence score is derived from how often it did.
"""

import logging
import re
from typing import Optional, Sequence, Tuple

from pydantic import BaseModel, Field, model_validator

from unpack.core.logging_utils import preview
from unpack.services.openai_client import ChatModel, ModelUnavailable, get_chat_model
from unpack.shared.errors import ExtractionFailure

logger = logging.getLogger("Unpack.Extraction")

UNCLEAR_MARKER = "[unclear]"
CONFIDENCE_FLOOR = 0.3
PAGE_SEPARATOR = "\n\n---\n\n"

EXTRACTION_INSTRUCTION = (
    "Extract all handwritten text from this journal page. Return ONLY the extracted text, "
    "preserving line breaks and paragraph structure. If you cannot read certain words clearly, "
    "indicate with [unclear]."
)


class PageImage(BaseModel):
    """One photographed page, either inline (base64 JPEG) or by URL."""
    image_base64: Optional[str] = None
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "PageImage":
        if bool(self.image_base64) == bool(self.image_url):
            raise ValueError("Provide exactly one of image_base64 or image_url")
        return self

    def as_url(self) -> str:
        if self.image_url:
            return self.image_url
        return f"data:image/jpeg;base64,{self.image_base64}"


class ExtractionResult(BaseModel):
    """Text read from one page and how far it can be trusted."""
    text: str
    confidence: float = Field(ge=0.0, le=1.0)


def page_confidence(text: str) -> float:
    """
    Score a page from its [unclear] markers.

    max(0.3, 1 - 2 * unclear / words). A page with no words at all scores 0.0.
    """
    word_count = len(text.split())
    if word_count == 0:
        return 0.0
    unclear_count = len(re.findall(re.escape(UNCLEAR_MARKER), text))
    confidence = max(CONFIDENCE_FLOOR, 1 - (unclear_count / word_count) * 2)
    return min(1.0, confidence)


def combine_extractions(results: Sequence[ExtractionResult]) -> Tuple[str, float]:
    """
    Merge per-page results in page order.

    Pages with no text are left out of the combined text but still count
    towards the mean confidence.
    """
    if not results:
        return "", 0.0

    combined_text = PAGE_SEPARATOR.join(r.text for r in results if r.text.strip())
    mean_confidence = sum(r.confidence for r in results) / len(results)
    return combined_text, mean_confidence


class VisionExtractor:
    """Reads handwriting from page photos through the OpenAI vision model."""

    def __init__(self, model: Optional[ChatModel] = None) -> None:
        self.model = model or get_chat_model()

    async def extract(self, page: PageImage, page_index: int = 0) -> ExtractionResult:
        """
        Extract one page.

        Raises:
            ExtractionFailure: model unreachable, timed out, or returned nothing
        """
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": EXTRACTION_INSTRUCTION},
                    {"type": "image_url", "image_url": {"url": page.as_url()}},
                ],
            }
        ]

        try:
            text = await self.model.complete(messages, max_tokens=2000, operation="extract")
        except ModelUnavailable as exc:
            logger.error(f"Extraction failed for page {page_index}: {exc}")
            raise ExtractionFailure(
                "We had trouble reading your handwriting. Please try again.",
                page_index=page_index,
            ) from exc

        if not text or not text.strip():
            logger.error(f"Vision model returned no text for page {page_index}")
            raise ExtractionFailure(
                "No handwriting could be found on this page.",
                page_index=page_index,
            )

        confidence = page_confidence(text)
        logger.info(
            f"Extracted page {page_index}: {len(text.split())} words, confidence={confidence:.2f} "
            f"'{preview(text, 40)}'"
        )
        return ExtractionResult(text=text, confidence=confidence)

