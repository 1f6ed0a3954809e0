from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from grindgrr.core.errors import RecordLookupError
from grindgrr.models.dog import DogProfile
from grindgrr.services.swipe_service import judged_dog_ids

NO_CANDIDATES_MESSAGE = "We can no longer find dogs near you. Please try again later!"


def first_dog_for_owner(session: Session, owner_id: int) -> DogProfile | None:
    statement = (
        select(DogProfile)
        .where(DogProfile.owner_id == owner_id)
        .order_by(DogProfile.id)  # type: ignore[arg-type]
        .limit(1)
    )
    return session.exec(statement).first()


def next_candidate(session: Session, dog_id: int) -> DogProfile | None:
    """Lowest-id dog the swiper has not judged yet and does not own.

    Ordering by id keeps the answer stable while the ledger is unchanged, so a
    client can safely ask again after a failed render.
    """
    try:
        swiper = session.get(DogProfile, dog_id)
    except SQLAlchemyError as err:
        raise RecordLookupError("Failed to load swiping dog.") from err
    if swiper is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Swiping dog not found.",
        )

    judged = judged_dog_ids(session, dog_id)

    statement = select(DogProfile).where(DogProfile.owner_id != swiper.owner_id)
    if judged:
        statement = statement.where(
            DogProfile.id.notin_(sorted(judged))  # type: ignore[union-attr]
        )
    statement = statement.order_by(DogProfile.id).limit(1)  # type: ignore[arg-type]
    try:
        return session.exec(statement).first()
    except SQLAlchemyError as err:
        raise RecordLookupError("Failed to load next candidate.") from err
