from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import HTTPException, status
from sqlalchemy import asc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.schema import Table
from sqlmodel import Session, select

from grindgrr.core.change_feed import ChangeFeed, change_feed
from grindgrr.core.config import settings
from grindgrr.core.errors import RecordLookupError, WriteError
from grindgrr.models.account import Account
from grindgrr.models.message import Message
from grindgrr.schemas.transcript import TranscriptEntry
from grindgrr.services.conversation_service import get_conversation_for_participant

logger = logging.getLogger(__name__)

MESSAGE_TABLE = cast(Table, Message.__table__)  # type: ignore[attr-defined]


def _display_name(account: Account) -> str:
    if account.display_name:
        return account.display_name
    return account.email.split("@", 1)[0]


def _insert_event_record(message: Message) -> dict[str, Any]:
    # Insert-events carry the bare row; the sender's display name is resolved
    # by the subscriber
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_owner_id": message.sender_owner_id,
        "content": message.content,
        "created_at": message.created_at.isoformat(),
    }


def send_message(
    conversation_id: int,
    sender_owner_id: int,
    content: str,
    session: Session,
    *,
    feed: ChangeFeed = change_feed,
) -> Message:
    if not content or not content.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Message content cannot be empty.",
        )
    if len(content) > settings.message_max_length:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Message content is too long.",
        )

    get_conversation_for_participant(session, conversation_id, sender_owner_id)

    message = Message(
        conversation_id=conversation_id,
        sender_owner_id=sender_owner_id,
        content=content.strip(),
    )
    session.add(message)
    try:
        session.commit()
    except SQLAlchemyError as err:
        session.rollback()
        raise WriteError("Failed to send message. Please retry.") from err
    session.refresh(message)

    delivered = feed.publish("message", _insert_event_record(message))
    logger.debug(
        "message %s published to %s live viewer(s)",
        message.id,
        delivered,
    )
    return message


def list_messages(
    conversation_id: int,
    requester_owner_id: int,
    *,
    limit: int,
    offset: int,
    session: Session,
) -> tuple[int, list[Message]]:
    get_conversation_for_participant(session, conversation_id, requester_owner_id)

    count_statement = (
        select(func.count())
        .select_from(MESSAGE_TABLE)
        .where(MESSAGE_TABLE.c.conversation_id == conversation_id)
    )
    total_result = session.exec(count_statement).one()
    total_count = int(
        total_result[0] if isinstance(total_result, tuple) else total_result
    )

    statement = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(asc(MESSAGE_TABLE.c.created_at), asc(MESSAGE_TABLE.c.id))
        .offset(offset)
        .limit(limit)
    )
    messages = list(session.exec(statement).all())
    return total_count, messages


def load_transcript(session: Session, conversation_id: int) -> list[TranscriptEntry]:
    """Full ordered history of a conversation with senders resolved."""
    statement = (
        select(Message, Account)
        .join(Account, Account.id == Message.sender_owner_id)  # type: ignore[arg-type]
        .where(Message.conversation_id == conversation_id)
        .order_by(asc(MESSAGE_TABLE.c.created_at), asc(MESSAGE_TABLE.c.id))
    )
    try:
        rows = session.exec(statement).all()
    except SQLAlchemyError as err:
        raise RecordLookupError("Failed to load conversation history.") from err
    return [_to_entry(message, account) for message, account in rows]


def resolve_sender(session: Session, message_id: int) -> TranscriptEntry:
    statement = (
        select(Message, Account)
        .join(Account, Account.id == Message.sender_owner_id)  # type: ignore[arg-type]
        .where(Message.id == message_id)
    )
    try:
        row = session.exec(statement).first()
    except SQLAlchemyError as err:
        raise RecordLookupError(f"Failed to resolve message {message_id}.") from err
    if row is None:
        # The feed can announce a row before it is readable here
        raise RecordLookupError(f"Message {message_id} is not readable yet.")
    message, account = row
    return _to_entry(message, account)


def _to_entry(message: Message, account: Account) -> TranscriptEntry:
    return TranscriptEntry(
        id=cast(int, message.id),
        conversation_id=message.conversation_id,
        sender_owner_id=message.sender_owner_id,
        content=message.content,
        created_at=message.created_at,
        sender_display_name=_display_name(account),
        resolved=True,
    )
