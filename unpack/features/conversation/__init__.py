"""
Conversation feature module.

- Message records and the pending/confirmed history union
- Companion persona and tangent context
- Responders: live model and offline heuristic

The engine itself lives in `unpack.features.conversation.engine`:

    from unpack.features.conversation.engine import ConversationEngine
"""

from unpack.features.conversation.base import Responder
from unpack.features.conversation.heuristic import HeuristicResponder
from unpack.features.conversation.messages import (
    ConfirmedMessage,
    HistoryItem,
    Message,
    PendingMessage,
)
from unpack.features.conversation.persona import ConversationContext
from unpack.features.conversation.remote import RemoteModelResponder
from unpack.features.conversation.responders import build_responder

__all__ = [
    "Responder",
    "HeuristicResponder",
    "RemoteModelResponder",
    "build_responder",
    "ConversationContext",
    "Message",
    "PendingMessage",
    "ConfirmedMessage",
    "HistoryItem",
]
