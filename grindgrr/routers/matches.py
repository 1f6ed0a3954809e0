from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session

from grindgrr.core.db import get_session
from grindgrr.models.conversation import ConversationOut
from grindgrr.models.match import MatchOut, MatchStatus
from grindgrr.routers.dogs import CurrentAccountDep, require_account_id
from grindgrr.routers.swipes import outcome_to_out
from grindgrr.schemas.swipe import MatchEvaluateRequest, MatchOutcomeOut
from grindgrr.services.conversation_service import get_or_create_conversation
from grindgrr.services.match_service import (
    evaluate_match,
    get_match_for_participant,
    list_matches_for_account,
)
from grindgrr.services.swipe_service import validate_swipe

router = APIRouter(prefix="/matches", tags=["matches"])

SessionDep = Annotated[Session, Depends(get_session)]


@router.get("", response_model=list[MatchOut])
def list_my_matches(
    current: CurrentAccountDep,
    session: SessionDep,
    response: Response,
    match_status: Annotated[
        MatchStatus | None,
        Query(alias="status", description="Filter by status (active, ended)"),
    ] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[MatchOut]:
    total_count, matches = list_matches_for_account(
        session,
        require_account_id(current),
        limit=limit,
        offset=offset,
        match_status=match_status,
    )
    response.headers["X-Total-Count"] = str(total_count)
    return [MatchOut.model_validate(match, from_attributes=True) for match in matches]


@router.post("/evaluate", response_model=MatchOutcomeOut)
def evaluate(
    payload: MatchEvaluateRequest,
    current: CurrentAccountDep,
    session: SessionDep,
) -> MatchOutcomeOut:
    """Re-run match detection for a pair, e.g. after a failed outcome."""
    validate_swipe(
        session,
        require_account_id(current),
        payload.swiper_dog_id,
        payload.swiped_dog_id,
    )
    outcome = evaluate_match(session, payload.swiper_dog_id, payload.swiped_dog_id)
    return outcome_to_out(outcome)


@router.post("/{match_id}/conversation", response_model=ConversationOut)
def open_conversation(
    match_id: int,
    current: CurrentAccountDep,
    session: SessionDep,
) -> ConversationOut:
    get_match_for_participant(session, match_id, require_account_id(current))
    conversation = get_or_create_conversation(session, match_id)
    return ConversationOut.model_validate(conversation, from_attributes=True)
