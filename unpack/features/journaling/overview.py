"""
Entry overview generation.

Produces the short, validating summary shown after extraction. This stage
never blocks the capture flow: any failure yields OVERVIEW_FALLBACK.
"""

import logging
from typing import Optional

from unpack.core.logging_utils import preview
from unpack.services.openai_client import ChatModel, ModelUnavailable, get_chat_model
from unpack.shared.errors import SummaryFailure

logger = logging.getLogger("Unpack.Journaling.Overview")

OVERVIEW_FALLBACK = (
    "We captured your thoughts. Take a moment to review before we discover the tangents within."
)

OVERVIEW_SYSTEM_PROMPT = (
    "You are a reflective journaling assistant. Create a brief, validating overview of the "
    "journal entry that clarifies the main themes without judgment. Use \"You wrote about...\" "
    "language. Keep it to 2-3 sentences."
)


class OverviewGenerator:
    """Summarizes combined entry text in the companion's voice."""

    def __init__(self, model: Optional[ChatModel] = None) -> None:
        self.model = model or get_chat_model()

    async def summarize(self, text: str) -> str:
        """Return a 2-3 sentence overview, or the fallback on any failure."""
        try:
            return await self._request_overview(text)
        except SummaryFailure as exc:
            logger.warning(f"Overview unavailable, using fallback: {exc}")
            return OVERVIEW_FALLBACK

    async def _request_overview(self, text: str) -> str:
        if not text.strip():
            raise SummaryFailure("No text to summarize")

        messages = [
            {"role": "system", "content": OVERVIEW_SYSTEM_PROMPT},
            {"role": "user", "content": f"Create an overview for this journal entry:\n\n{text}"},
        ]
        try:
            overview = await self.model.complete(messages, max_tokens=300, operation="overview")
        except ModelUnavailable as exc:
            raise SummaryFailure(str(exc)) from exc

        overview = overview.strip()
        if not overview:
            raise SummaryFailure("Model returned an empty overview")

        logger.info(f"Overview generated: '{preview(overview)}'")
        return overview
