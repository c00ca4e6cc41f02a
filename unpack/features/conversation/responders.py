"""Picks the responder once, from configuration, when the engine is built."""

import logging
import random
from typing import Optional

from unpack.core.config import Config, settings
from unpack.features.conversation.base import Responder
from unpack.features.conversation.heuristic import HeuristicResponder
from unpack.features.conversation.remote import RemoteModelResponder
from unpack.services.openai_client import ChatModel

logger = logging.getLogger("Unpack.Conversation")

RESPONDER_MODES = ("remote", "heuristic", "auto")


def build_responder(
    config: Optional[Config] = None,
    model: Optional[ChatModel] = None,
    rng: Optional[random.Random] = None,
) -> Responder:
    """
    Build the responder named by RESPONDER_MODE.

    "auto" uses the live model only when the OpenAI key looks real.

    Raises:
        ValueError: unknown mode, or "remote" without an API key
    """
    config = config or settings
    mode = config.RESPONDER_MODE
    if mode not in RESPONDER_MODES:
        raise ValueError(f"Unknown RESPONDER_MODE {mode!r}; expected one of {', '.join(RESPONDER_MODES)}")

    if mode == "auto":
        mode = "remote" if config.has_real_openai_key else "heuristic"

    if mode == "remote":
        if model is None and not config.OPENAI_API_KEY:
            raise ValueError("RESPONDER_MODE=remote requires OPENAI_API_KEY")
        logger.info("Using remote model responder")
        return RemoteModelResponder(model=model)

    logger.info("Using offline heuristic responder")
    return HeuristicResponder(rng=rng)
