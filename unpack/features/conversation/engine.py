"""
Conversation Engine - per-tangent companion chat.

A conversation is the tangent, the context the companion gets about it and the
visible history. Its state is derived, never stored:

    no messages yet            -> UNSEEDED
    a responder call in flight -> AWAITING_AI
    otherwise                  -> AWAITING_USER

`seed` writes the companion's opening turn; `send` adds a user message and
exactly one reply; `retry` asks again for the reply to a trailing unanswered
user message. Only one responder call per tangent runs at a time; a second
caller gets ConversationBusy instead of queueing. `delete` is refused while a
call is running, and a reply whose tangent disappeared meanwhile is dropped.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from unpack.core.config import settings
from unpack.core.logging_utils import preview
from unpack.features.conversation.base import Responder
from unpack.features.conversation.messages import (
    ConfirmedMessage,
    HistoryItem,
    Message,
    PendingMessage,
)
from unpack.features.conversation.persona import ConversationContext
from unpack.features.database.base import JournalStore
from unpack.features.journaling.models import Tangent, new_id
from unpack.shared.errors import (
    ConversationBusy,
    ConversationStateError,
    InvalidInput,
    NotFound,
    PersistenceFailure,
    ResponseFailure,
)

logger = logging.getLogger("Unpack.Conversation")


class ConversationState(str, Enum):
    UNSEEDED = "unseeded"
    AWAITING_USER = "awaiting_user"
    AWAITING_AI = "awaiting_ai"


@dataclass
class Conversation:
    tangent: Tangent
    context: ConversationContext
    history: List[HistoryItem] = field(default_factory=list)
    in_flight: bool = False

    @property
    def state(self) -> ConversationState:
        if self.in_flight:
            return ConversationState.AWAITING_AI
        if not self.history:
            return ConversationState.UNSEEDED
        return ConversationState.AWAITING_USER

    @property
    def awaiting_reply(self) -> bool:
        """True when the last saved message is the user's and has no answer."""
        if not self.history:
            return False
        last = self.history[-1]
        return last.role == "user" and isinstance(last, ConfirmedMessage)

    def reconcile(self, correlation_id: str, message: Message) -> ConfirmedMessage:
        """Swap the pending entry carrying `correlation_id` for the saved message."""
        confirmed = ConfirmedMessage.from_message(message, correlation_id=correlation_id)
        for index, item in enumerate(self.history):
            if isinstance(item, PendingMessage) and item.correlation_id == correlation_id:
                self.history[index] = confirmed
                return confirmed
        self.history.append(confirmed)
        return confirmed

    def discard_pending(self, correlation_id: str) -> None:
        self.history = [
            item
            for item in self.history
            if not (isinstance(item, PendingMessage) and item.correlation_id == correlation_id)
        ]


class ConversationEngine:
    """Runs tangent conversations against a store and a responder."""

    def __init__(
        self,
        store: JournalStore,
        responder: Responder,
        timeout: Optional[float] = None,
    ) -> None:
        self.store = store
        self.responder = responder
        self.timeout = timeout if timeout is not None else settings.REMOTE_CALL_TIMEOUT_SECONDS
        self._locks: Dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, tangent_id: str) -> Conversation:
        """
        Rebuild a conversation from the store.

        Raises:
            NotFound: no such tangent
        """
        tangent = self.store.get_tangent(tangent_id)
        if tangent is None:
            raise NotFound("Tangent not found", tangent_id=tangent_id)

        entry = self.store.get_entry(tangent.entry_id)
        context = ConversationContext(
            tangent_name=tangent.name,
            emotion=tangent.emotion,
            entry_text=entry.extracted_text if entry else "",
            overview=entry.overview_text if entry else "",
            excerpt=tangent.excerpt,
        )
        history: List[HistoryItem] = [
            ConfirmedMessage.from_message(message)
            for message in self.store.list_messages(tangent_id)
        ]
        return Conversation(
            tangent=tangent,
            context=context,
            history=history,
            in_flight=self.is_busy(tangent_id),
        )

    def is_busy(self, tangent_id: str) -> bool:
        lock = self._locks.get(tangent_id)
        return lock is not None and lock.locked()

    async def open(self, tangent_id: str) -> Conversation:
        """
        Open a tangent: mark it interacted and seed it if nobody has yet.

        Opening an already seeded tangent only returns its history.
        """
        conversation = self.load(tangent_id)
        if not conversation.tangent.interacted:
            conversation.tangent = self.store.mark_interacted(tangent_id)
            logger.info(f"Tangent {tangent_id} opened for the first time")

        if conversation.state is ConversationState.UNSEEDED:
            try:
                await self.seed(conversation)
            except ConversationStateError:
                # Seeded by someone else between load and seed
                return self.load(tangent_id)
        return conversation

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    async def seed(self, conversation: Conversation) -> ConfirmedMessage:
        """
        Generate and save the companion's opening message.

        Raises:
            ConversationStateError: the conversation already has messages
            ConversationBusy: another call for this tangent is running
            ResponseFailure: the responder could not produce an opening
        """
        tangent_id = conversation.tangent.id
        async with self._hold(tangent_id):
            if conversation.state is not ConversationState.UNSEEDED or self.store.list_messages(tangent_id):
                raise ConversationStateError(
                    "This conversation has already started",
                    tangent_id=tangent_id,
                )

            conversation.in_flight = True
            try:
                content = await self._call(self.responder.open(conversation.context), tangent_id)
            finally:
                conversation.in_flight = False

            return self._save_reply(conversation, content)

    async def send(
        self,
        conversation: Conversation,
        user_text: str,
        correlation_id: Optional[str] = None,
    ) -> ConfirmedMessage:
        """
        Add a user message and return the companion's reply.

        The user message is shown as pending straight away, saved, and then
        answered. If the reply fails the saved user message stays in the
        history and `retry` can ask again.

        Raises:
            InvalidInput: blank message
            ConversationStateError: conversation not seeded yet
            ConversationBusy: another call for this tangent is running
            ResponseFailure: no reply could be produced
        """
        text = (user_text or "").strip()
        if not text:
            raise InvalidInput("Message cannot be empty")

        tangent_id = conversation.tangent.id
        async with self._hold(tangent_id):
            if conversation.state is not ConversationState.AWAITING_USER:
                raise ConversationStateError(
                    "Open the tangent before sending messages",
                    tangent_id=tangent_id,
                    state=conversation.state.value,
                )

            pending = PendingMessage(
                correlation_id=correlation_id or new_id(),
                tangent_id=tangent_id,
                role="user",
                content=text,
            )
            conversation.history.append(pending)
            try:
                stored = self.store.add_message(
                    Message(tangent_id=tangent_id, role="user", content=text)
                )
            except PersistenceFailure:
                conversation.discard_pending(pending.correlation_id)
                raise
            conversation.reconcile(pending.correlation_id, stored)
            logger.info(f"User message on tangent {tangent_id}: {preview(text, 50)}")

            return await self._answer(conversation, text)

    async def retry(self, conversation: Conversation) -> ConfirmedMessage:
        """
        Ask again for the reply to the last, unanswered user message.

        Raises:
            ConversationStateError: nothing is waiting for a reply
            ConversationBusy: another call for this tangent is running
            ResponseFailure: no reply could be produced
        """
        tangent_id = conversation.tangent.id
        async with self._hold(tangent_id):
            if not conversation.awaiting_reply:
                raise ConversationStateError(
                    "There is no message waiting for a reply",
                    tangent_id=tangent_id,
                )
            logger.info(f"Retrying reply on tangent {tangent_id}")
            return await self._answer(conversation, conversation.history[-1].content)

    def delete(self, tangent_id: str) -> None:
        """
        Delete a tangent and its conversation.

        Raises:
            ConversationBusy: a responder call for this tangent is running
            NotFound: no such tangent
            PersistenceFailure: delete did not complete
        """
        if self.is_busy(tangent_id):
            raise ConversationBusy(
                "Wait for the reply before deleting this tangent",
                tangent_id=tangent_id,
            )
        self.store.delete_tangent(tangent_id)
        self._locks.pop(tangent_id, None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _hold(self, tangent_id: str):
        """Hold the tangent's lock for one call; the lock is dropped once released."""
        lock = self._locks.setdefault(tangent_id, asyncio.Lock())
        if lock.locked():
            raise ConversationBusy(
                "Still working on the previous message",
                tangent_id=tangent_id,
            )
        async with lock:
            try:
                yield
            finally:
                self._locks.pop(tangent_id, None)

    async def _answer(self, conversation: Conversation, user_text: str) -> ConfirmedMessage:
        tangent_id = conversation.tangent.id
        prior = conversation.history[:-1]
        conversation.in_flight = True
        try:
            content = await self._call(
                self.responder.reply(conversation.context, prior, user_text),
                tangent_id,
            )
        finally:
            conversation.in_flight = False
        return self._save_reply(conversation, content)

    async def _call(self, call, tangent_id: str) -> str:
        try:
            content = await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.error(f"{self.responder.name} responder timed out on tangent {tangent_id}")
            raise ResponseFailure(
                "I couldn't respond just now. Please try again.",
                tangent_id=tangent_id,
            ) from exc

        content = (content or "").strip()
        if not content:
            raise ResponseFailure(
                "I couldn't respond just now. Please try again.",
                tangent_id=tangent_id,
            )
        return content

    def _save_reply(self, conversation: Conversation, content: str) -> ConfirmedMessage:
        tangent_id = conversation.tangent.id
        if self.store.get_tangent(tangent_id) is None:
            logger.warning(f"Tangent {tangent_id} was deleted before its reply arrived, dropping it")
            raise NotFound("This tangent was deleted", tangent_id=tangent_id)

        stored = self.store.add_message(
            Message(tangent_id=conversation.tangent.id, role="ai", content=content)
        )
        confirmed = ConfirmedMessage.from_message(stored)
        conversation.history.append(confirmed)
        return confirmed
