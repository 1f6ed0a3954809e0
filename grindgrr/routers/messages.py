from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session, SQLModel

from grindgrr.core.db import get_session
from grindgrr.models.message import MessageOut
from grindgrr.routers.dogs import CurrentAccountDep, require_account_id
from grindgrr.services.message_service import list_messages, send_message

router = APIRouter(prefix="/messages", tags=["messages"])

SessionDep = Annotated[Session, Depends(get_session)]


class MessageCreate(SQLModel):
    conversation_id: int
    content: str


@router.post("", response_model=MessageOut)
def create_message(
    payload: MessageCreate,
    current: CurrentAccountDep,
    session: SessionDep,
) -> MessageOut:
    message = send_message(
        conversation_id=payload.conversation_id,
        sender_owner_id=require_account_id(current),
        content=payload.content,
        session=session,
    )
    return MessageOut.model_validate(message, from_attributes=True)


@router.get("", response_model=list[MessageOut])
def list_conversation_messages(
    conversation_id: Annotated[int, Query()],
    current: CurrentAccountDep,
    session: SessionDep,
    response: Response,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[MessageOut]:
    total_count, messages = list_messages(
        conversation_id=conversation_id,
        requester_owner_id=require_account_id(current),
        limit=limit,
        offset=offset,
        session=session,
    )
    response.headers["X-Total-Count"] = str(total_count)
    return [
        MessageOut.model_validate(message, from_attributes=True) for message in messages
    ]
