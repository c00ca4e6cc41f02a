"""
Tangent discovery.

Splits an entry into 1-5 distinct emotional threads. Where the boundaries
fall is the model's call; this module only guarantees the shape of what comes
back: at least one and at most five candidates, each with a name and an
emotion. Any failure collapses to a single generic "reflection" tangent.
"""

import json
import logging
import re
from typing import Any, List, Optional

from pydantic import ValidationError

from unpack.features.journaling.models import (
    MAX_TANGENTS_PER_ENTRY,
    PLUTCHIK_PRIMARY_EMOTIONS,
    TangentCandidate,
)
from unpack.services.openai_client import ChatModel, ModelUnavailable, get_chat_model
from unpack.shared.errors import DiscoveryFailure

logger = logging.getLogger("Unpack.Journaling.Tangents")

FALLBACK_TANGENT_NAME = "Journal Entry"
FALLBACK_EMOTION = "reflection"
FALLBACK_EXCERPT_CHARS = 100

DISCOVERY_SYSTEM_PROMPT = f"""Analyze this journal entry and identify distinct "tangents" - separate threads of thought or emotional themes. For each tangent, provide:
1. name: A brief 2-4 word label
2. emotion: The primary emotion (use Plutchik's wheel: {", ".join(PLUTCHIK_PRIMARY_EMOTIONS)}, or their combinations)
3. excerpt: A key phrase from the text that represents this tangent

Return a JSON object: {{"tangents": [{{"name": "...", "emotion": "...", "excerpt": "..."}}]}}
Identify 1-{MAX_TANGENTS_PER_ENTRY} tangents depending on the content complexity."""


def fallback_tangents(text: str) -> List[TangentCandidate]:
    """The single generic tangent used whenever discovery cannot run."""
    return [
        TangentCandidate(
            name=FALLBACK_TANGENT_NAME,
            emotion=FALLBACK_EMOTION,
            excerpt=(text or "")[:FALLBACK_EXCERPT_CHARS],
        )
    ]


def parse_tangents(raw: str) -> List[TangentCandidate]:
    """
    Parse the model's JSON into validated candidates.

    Accepts {"tangents": [...]} or a bare list. Invalid items are skipped and
    the result is capped at MAX_TANGENTS_PER_ENTRY.

    Raises:
        DiscoveryFailure: unparsable JSON or no valid candidates
    """
    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError:
        json_match = re.search(r"[\[{][\s\S]*[\]}]", raw or "")
        if not json_match:
            raise DiscoveryFailure("Model response contained no JSON")
        try:
            payload = json.loads(json_match.group())
        except json.JSONDecodeError as exc:
            raise DiscoveryFailure(f"Unparsable tangent JSON: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("tangents", [])
    if not isinstance(payload, list):
        raise DiscoveryFailure("Tangent payload is not a list")

    candidates: List[TangentCandidate] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        try:
            candidates.append(TangentCandidate.model_validate(item))
        except ValidationError as exc:
            logger.debug(f"Skipping malformed tangent {item!r}: {exc.error_count()} errors")
        if len(candidates) == MAX_TANGENTS_PER_ENTRY:
            break

    if not candidates:
        raise DiscoveryFailure("No valid tangents in model response")
    return candidates


class TangentDiscoverer:
    """Finds the emotional threads running through an entry."""

    def __init__(self, model: Optional[ChatModel] = None) -> None:
        self.model = model or get_chat_model()

    async def discover(self, text: str) -> List[TangentCandidate]:
        """Return 1-5 candidates; the fallback tangent on any failure."""
        try:
            tangents = await self._request_tangents(text)
        except DiscoveryFailure as exc:
            logger.warning(f"Tangent discovery failed, using fallback: {exc}")
            return fallback_tangents(text)

        logger.info(
            f"Discovered {len(tangents)} tangents: "
            + ", ".join(f"{t.name} ({t.emotion})" for t in tangents)
        )
        return tangents

    async def _request_tangents(self, text: str) -> List[TangentCandidate]:
        if not text or not text.strip():
            raise DiscoveryFailure("No text to analyze")

        messages = [
            {"role": "system", "content": DISCOVERY_SYSTEM_PROMPT},
            {"role": "user", "content": text},
        ]
        try:
            raw = await self.model.complete(
                messages,
                max_tokens=1000,
                json_mode=True,
                operation="discover",
            )
        except ModelUnavailable as exc:
            raise DiscoveryFailure(str(exc)) from exc

        return parse_tangents(raw)
