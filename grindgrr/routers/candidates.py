from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from grindgrr.core.db import get_session
from grindgrr.models.dog import DogProfile, DogProfileOut
from grindgrr.routers.dogs import CurrentAccountDep, require_account_id
from grindgrr.schemas.swipe import CandidateOut
from grindgrr.services.candidate_service import (
    NO_CANDIDATES_MESSAGE,
    first_dog_for_owner,
    next_candidate,
)

router = APIRouter(prefix="/candidates", tags=["candidates"])

SessionDep = Annotated[Session, Depends(get_session)]


def resolve_swiping_dog(
    session: Session,
    account_id: int,
    dog_id: int | None,
) -> DogProfile:
    """The named dog if the caller owns it, else the caller's first dog."""
    if dog_id is None:
        dog = first_dog_for_owner(session, account_id)
        if dog is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="No dog profile detected. Please create one before swiping.",
            )
        return dog

    dog = session.get(DogProfile, dog_id)
    if dog is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Swiping dog not found.",
        )
    if dog.owner_id != account_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to swipe as this dog.",
        )
    return dog


@router.get("/next", response_model=CandidateOut)
def get_next_candidate(
    current: CurrentAccountDep,
    session: SessionDep,
    dog_id: Annotated[int | None, Query()] = None,
) -> CandidateOut:
    swiper = resolve_swiping_dog(session, require_account_id(current), dog_id)
    candidate = next_candidate(session, swiper.id or 0)
    if candidate is None:
        return CandidateOut(candidate=None, message=NO_CANDIDATES_MESSAGE)
    return CandidateOut(
        candidate=DogProfileOut.model_validate(candidate, from_attributes=True),
    )
