"""Responder capability: produces the companion's side of a tangent conversation."""

from abc import ABC, abstractmethod
from typing import List

from unpack.features.conversation.messages import HistoryItem
from unpack.features.conversation.persona import ConversationContext


class Responder(ABC):
    """
    Generates AI turns.

    Implementations raise ResponseFailure when no reply can be produced.
    """

    name: str = "responder"

    @abstractmethod
    async def open(self, context: ConversationContext) -> str:
        """First message of a tangent conversation, with no user input."""

    @abstractmethod
    async def reply(
        self,
        context: ConversationContext,
        history: List[HistoryItem],
        user_text: str,
    ) -> str:
        """Answer `user_text`, given everything said before it."""
