"""Companion turns generated by the OpenAI chat model."""

import logging
from typing import List, Optional

from unpack.features.conversation.base import Responder
from unpack.features.conversation.messages import HistoryItem, to_model_roles
from unpack.features.conversation.persona import ConversationContext
from unpack.services.openai_client import ChatModel, ModelUnavailable, get_chat_model
from unpack.shared.errors import ResponseFailure

logger = logging.getLogger("Unpack.Conversation.Remote")

MAX_REPLY_TOKENS = 500


class RemoteModelResponder(Responder):
    """Persona prompt + tangent context + history, sent to the live model."""

    name = "remote"

    def __init__(self, model: Optional[ChatModel] = None) -> None:
        self.model = model or get_chat_model()

    async def open(self, context: ConversationContext) -> str:
        messages = [
            {"role": "system", "content": context.system_prompt()},
            {"role": "user", "content": context.opening_instruction()},
        ]
        return await self._complete(messages, operation="chat.open")

    async def reply(
        self,
        context: ConversationContext,
        history: List[HistoryItem],
        user_text: str,
    ) -> str:
        messages = [{"role": "system", "content": context.system_prompt()}]
        messages.extend(to_model_roles(history))
        messages.append({"role": "user", "content": user_text})
        return await self._complete(messages, operation="chat.reply")

    async def _complete(self, messages: List[dict], operation: str) -> str:
        try:
            content = await self.model.complete(messages, max_tokens=MAX_REPLY_TOKENS, operation=operation)
        except ModelUnavailable as exc:
            logger.error(f"Companion reply failed: {exc}")
            raise ResponseFailure("I couldn't respond just now. Please try again.") from exc

        content = content.strip()
        if not content:
            raise ResponseFailure("I couldn't respond just now. Please try again.")
        return content
