from __future__ import annotations

import logging
from typing import cast

from fastapi import HTTPException, status
from sqlalchemy import desc, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.sql.schema import Table
from sqlmodel import Session, select

from grindgrr.core.errors import RaceLost, RecordLookupError, WriteError
from grindgrr.models.conversation import Conversation
from grindgrr.models.match import Match

logger = logging.getLogger(__name__)


def _find_conversation(session: Session, match_id: int) -> Conversation | None:
    statement = select(Conversation).where(Conversation.match_id == match_id)
    try:
        return session.exec(statement).first()
    except SQLAlchemyError as err:
        raise RecordLookupError("Failed to look up conversation.") from err


def _insert_conversation(session: Session, conversation: Conversation) -> Conversation:
    session.add(conversation)
    try:
        session.commit()
    except IntegrityError as err:
        session.rollback()
        raise RaceLost() from err
    except SQLAlchemyError as err:
        session.rollback()
        raise WriteError("Failed to create conversation.") from err
    session.refresh(conversation)
    return conversation


def get_or_create_conversation(session: Session, match_id: int) -> Conversation:
    existing = _find_conversation(session, match_id)
    if existing is not None:
        return existing

    try:
        match = session.get(Match, match_id)
    except SQLAlchemyError as err:
        raise RecordLookupError("Failed to look up match.") from err
    if match is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Match not found.",
        )

    conversation = Conversation(
        match_id=match_id,
        participant_a_id=match.owner_a_id,
        participant_b_id=match.owner_b_id,
    )
    try:
        created = _insert_conversation(session, conversation)
    except RaceLost:
        logger.info(
            "conversation for match %s was created concurrently, adopting it",
            match_id,
        )
        winner = _find_conversation(session, match_id)
        if winner is None:
            raise WriteError("Failed to create conversation.") from None
        return winner

    logger.info("created conversation %s for match %s", created.id, match_id)
    return created


def get_conversation_for_participant(
    session: Session,
    conversation_id: int,
    account_id: int,
) -> Conversation:
    conversation = session.get(Conversation, conversation_id)
    if conversation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found.",
        )
    validate_participant(conversation, account_id)
    return conversation


def validate_participant(conversation: Conversation, account_id: int) -> None:
    if account_id not in {conversation.participant_a_id, conversation.participant_b_id}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not part of this conversation.",
        )


def list_conversations_for_account(
    session: Session,
    account_id: int,
    *,
    limit: int,
    offset: int,
) -> tuple[int, list[Conversation]]:
    conversation_table = cast(
        Table,
        Conversation.__table__,  # type: ignore[attr-defined]
    )
    condition = or_(
        conversation_table.c.participant_a_id == account_id,
        conversation_table.c.participant_b_id == account_id,
    )

    total_result = session.exec(
        select(func.count()).select_from(conversation_table).where(condition)
    ).one()
    total_count = int(
        total_result[0] if isinstance(total_result, tuple) else total_result
    )

    statement = (
        select(Conversation)
        .where(condition)
        .order_by(desc(conversation_table.c.created_at), desc(conversation_table.c.id))
        .offset(offset)
        .limit(limit)
    )
    return total_count, list(session.exec(statement).all())
