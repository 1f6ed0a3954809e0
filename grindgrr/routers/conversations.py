from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Annotated

from fastapi import (
    APIRouter,
    Depends,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from grindgrr.core import db
from grindgrr.core.change_feed import change_feed
from grindgrr.core.db import get_session
from grindgrr.core.errors import GrindgrrError
from grindgrr.models.conversation import Conversation, ConversationOut
from grindgrr.routers.dogs import (
    CurrentAccountDep,
    account_for_token,
    require_account_id,
)
from grindgrr.schemas.transcript import TranscriptEntry
from grindgrr.services.conversation_service import (
    get_conversation_for_participant,
    list_conversations_for_account,
)
from grindgrr.services.message_service import load_transcript, resolve_sender
from grindgrr.services.transcript import TranscriptReconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])

SessionDep = Annotated[Session, Depends(get_session)]


@router.get("", response_model=list[ConversationOut])
def list_my_conversations(
    current: CurrentAccountDep,
    session: SessionDep,
    response: Response,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[ConversationOut]:
    total_count, conversations = list_conversations_for_account(
        session,
        require_account_id(current),
        limit=limit,
        offset=offset,
    )
    response.headers["X-Total-Count"] = str(total_count)
    return [
        ConversationOut.model_validate(conversation, from_attributes=True)
        for conversation in conversations
    ]


@router.get("/{conversation_id}/transcript", response_model=list[TranscriptEntry])
def get_transcript(
    conversation_id: int,
    current: CurrentAccountDep,
    session: SessionDep,
) -> list[TranscriptEntry]:
    get_conversation_for_participant(
        session,
        conversation_id,
        require_account_id(current),
    )
    return load_transcript(session, conversation_id)


# Live socket helpers open their own sessions; they run in the threadpool


def _can_view(conversation_id: int, token: str) -> bool:
    with Session(db.engine) as session:
        account = account_for_token(session, token)
        if account is None or account.id is None:
            return False
        conversation = session.get(Conversation, conversation_id)
        if conversation is None:
            return False
        return account.id in {
            conversation.participant_a_id,
            conversation.participant_b_id,
        }


def _load_history(conversation_id: int) -> list[TranscriptEntry]:
    with Session(db.engine) as session:
        return load_transcript(session, conversation_id)


def _resolve_sender(message_id: int) -> TranscriptEntry:
    with Session(db.engine) as session:
        return resolve_sender(session, message_id)


async def _load_history_async(conversation_id: int) -> list[TranscriptEntry]:
    return await run_in_threadpool(_load_history, conversation_id)


async def _resolve_sender_async(message_id: int) -> TranscriptEntry:
    return await run_in_threadpool(_resolve_sender, message_id)


@router.websocket("/{conversation_id}/live")
async def live_transcript(
    websocket: WebSocket,
    conversation_id: int,
    token: Annotated[str, Query()],
) -> None:
    """Push the full ordered transcript on open and after every change."""
    if not await run_in_threadpool(_can_view, conversation_id, token):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()

    async def push(entries: list[TranscriptEntry]) -> None:
        await websocket.send_json([entry.model_dump(mode="json") for entry in entries])

    reconciler = TranscriptReconciler(
        change_feed,
        load_history=_load_history_async,
        resolve_sender=_resolve_sender_async,
        on_change=push,
    )
    consumer: asyncio.Task[None] | None = None
    try:
        await reconciler.open(conversation_id)
        consumer = asyncio.create_task(reconciler.run())
        while True:
            # Viewers only listen; incoming frames just keep the socket alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("viewer left conversation %s", conversation_id)
    except GrindgrrError as err:
        logger.warning(
            "live transcript for conversation %s failed: %s",
            conversation_id,
            err.detail,
        )
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason=err.detail)
    finally:
        reconciler.close()
        if consumer is not None:
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
