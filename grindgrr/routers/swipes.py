from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlmodel import Session

from grindgrr.core.db import get_session
from grindgrr.models.match import MatchOut
from grindgrr.models.swipe import SwipeActionOut
from grindgrr.routers.dogs import CurrentAccountDep, require_account_id
from grindgrr.schemas.swipe import MatchOutcomeOut, SwipeCreate, SwipeResultOut
from grindgrr.services.match_service import MatchOutcome, handle_swipe
from grindgrr.services.swipe_service import validate_swipe

router = APIRouter(prefix="/swipes", tags=["swipes"])

SessionDep = Annotated[Session, Depends(get_session)]


def outcome_to_out(outcome: MatchOutcome) -> MatchOutcomeOut:
    return MatchOutcomeOut(
        status=outcome.status,
        matched=outcome.matched,
        match=(
            MatchOut.model_validate(outcome.match, from_attributes=True)
            if outcome.match is not None
            else None
        ),
        reason=outcome.reason,
    )


@router.post("", response_model=SwipeResultOut)
def create_swipe(
    payload: SwipeCreate,
    current: CurrentAccountDep,
    session: SessionDep,
) -> SwipeResultOut:
    """Record a like or pass and report whether it completed a match."""
    validate_swipe(
        session,
        require_account_id(current),
        payload.swiper_dog_id,
        payload.swiped_dog_id,
    )
    result = handle_swipe(
        session,
        payload.swiper_dog_id,
        payload.swiped_dog_id,
        payload.decision,
    )
    return SwipeResultOut(
        swipe=SwipeActionOut.model_validate(result.swipe, from_attributes=True),
        outcome=outcome_to_out(result.outcome) if result.outcome else None,
        message=result.message,
    )
