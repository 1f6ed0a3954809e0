from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from grindgrr.core.errors import RecordLookupError, WriteError
from grindgrr.models.dog import DogProfile
from grindgrr.models.swipe import SwipeAction, SwipeDecision

logger = logging.getLogger(__name__)


def validate_swipe(
    session: Session,
    account_id: int,
    swiper_dog_id: int,
    swiped_dog_id: int,
) -> None:
    swiper = session.get(DogProfile, swiper_dog_id)
    if swiper is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Swiping dog not found.",
        )
    if swiper.owner_id != account_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to swipe as this dog.",
        )
    target = session.get(DogProfile, swiped_dog_id)
    if target is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Target dog not found.",
        )
    if target.owner_id == account_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot swipe on own dog.",
        )


def record_swipe(
    session: Session,
    swiper_dog_id: int,
    swiped_dog_id: int,
    decision: SwipeDecision,
) -> SwipeAction:
    swipe = SwipeAction(
        swiper_dog_id=swiper_dog_id,
        swiped_dog_id=swiped_dog_id,
        decision=decision,
    )
    session.add(swipe)
    try:
        session.commit()
    except SQLAlchemyError as err:
        session.rollback()
        logger.warning(
            "recording swipe %s -> %s failed: %s",
            swiper_dog_id,
            swiped_dog_id,
            err,
        )
        raise WriteError("Failed to record swipe. Please retry.") from err
    session.refresh(swipe)
    return swipe


def like_exists(session: Session, swiper_dog_id: int, swiped_dog_id: int) -> bool:
    # Duplicate like rows are harmless: this only asks whether one exists
    statement = (
        select(SwipeAction.id)
        .where(
            SwipeAction.swiper_dog_id == swiper_dog_id,
            SwipeAction.swiped_dog_id == swiped_dog_id,
            SwipeAction.decision == SwipeDecision.like,
        )
        .limit(1)
    )
    try:
        return session.exec(statement).first() is not None
    except SQLAlchemyError as err:
        raise RecordLookupError("Failed to check like.") from err


def judged_dog_ids(session: Session, swiper_dog_id: int) -> set[int]:
    statement = select(SwipeAction.swiped_dog_id).where(
        SwipeAction.swiper_dog_id == swiper_dog_id
    )
    try:
        rows = session.exec(statement).all()
    except SQLAlchemyError as err:
        raise RecordLookupError("Failed to load previous swipes.") from err
    return {int(dog_id) for dog_id in rows if dog_id is not None}
