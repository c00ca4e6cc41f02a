"""
Tangent API Routes

The companion chat for one tangent:

- POST /tangents/{id}/open      first open marks it interacted and seeds it
- GET  /tangents/{id}/messages  history, oldest first
- POST /tangents/{id}/messages  one user message -> one reply
- POST /tangents/{id}/retry     ask again after a failed reply
- DELETE /tangents/{id}         tangent and its whole conversation (409 while
                                 a reply is still being written)

A failed reply returns 502 RESPONSE_FAILURE; the user's message is already
saved and shows up in the history.
"""

import logging

from fastapi import APIRouter, Depends

from unpack.api.dependencies import get_conversation_engine, get_owner_id, get_store, require_tangent
from unpack.api.models import ConversationResponse, SendMessageRequest, TurnResponse
from unpack.features.conversation.engine import Conversation, ConversationEngine
from unpack.features.database import JournalStore

router = APIRouter(prefix="/tangents", tags=["Tangents"])
logger = logging.getLogger("Unpack.API.Tangents")


def _conversation_response(conversation: Conversation) -> ConversationResponse:
    return ConversationResponse(
        tangent=conversation.tangent,
        state=conversation.state,
        messages=conversation.history,
    )


@router.post("/{tangent_id}/open", response_model=ConversationResponse)
async def open_tangent(
    tangent_id: str,
    owner_id: str = Depends(get_owner_id),
    store: JournalStore = Depends(get_store),
    engine: ConversationEngine = Depends(get_conversation_engine),
):
    require_tangent(store, tangent_id, owner_id)
    conversation = await engine.open(tangent_id)
    return _conversation_response(conversation)


@router.get("/{tangent_id}/messages", response_model=ConversationResponse)
async def get_messages(
    tangent_id: str,
    owner_id: str = Depends(get_owner_id),
    store: JournalStore = Depends(get_store),
    engine: ConversationEngine = Depends(get_conversation_engine),
):
    require_tangent(store, tangent_id, owner_id)
    return _conversation_response(engine.load(tangent_id))


@router.post("/{tangent_id}/messages", response_model=TurnResponse)
async def send_message(
    tangent_id: str,
    request: SendMessageRequest,
    owner_id: str = Depends(get_owner_id),
    store: JournalStore = Depends(get_store),
    engine: ConversationEngine = Depends(get_conversation_engine),
):
    require_tangent(store, tangent_id, owner_id)
    conversation = engine.load(tangent_id)
    reply = await engine.send(conversation, request.content, correlation_id=request.correlation_id)
    return TurnResponse(reply=reply, messages=conversation.history)


@router.post("/{tangent_id}/retry", response_model=TurnResponse)
async def retry_reply(
    tangent_id: str,
    owner_id: str = Depends(get_owner_id),
    store: JournalStore = Depends(get_store),
    engine: ConversationEngine = Depends(get_conversation_engine),
):
    require_tangent(store, tangent_id, owner_id)
    conversation = engine.load(tangent_id)
    reply = await engine.retry(conversation)
    return TurnResponse(reply=reply, messages=conversation.history)


@router.delete("/{tangent_id}")
async def delete_tangent(
    tangent_id: str,
    owner_id: str = Depends(get_owner_id),
    store: JournalStore = Depends(get_store),
    engine: ConversationEngine = Depends(get_conversation_engine),
):
    require_tangent(store, tangent_id, owner_id)
    engine.delete(tangent_id)
    logger.info(f"Tangent {tangent_id} deleted by {owner_id}")
    return {"status": "deleted", "tangent_id": tangent_id}
