from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import cast

from fastapi import HTTPException, status
from sqlalchemy import desc, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.sql.schema import Table
from sqlmodel import Session, select

from grindgrr.core.errors import GrindgrrError, RaceLost, RecordLookupError, WriteError
from grindgrr.models.dog import DogProfile
from grindgrr.models.match import Match, MatchStatus
from grindgrr.models.swipe import SwipeAction, SwipeDecision
from grindgrr.schemas.swipe import MatchOutcomeStatus
from grindgrr.services.swipe_service import like_exists, record_swipe

logger = logging.getLogger(__name__)

MATCH_MESSAGE = "It's a match!"
LIKED_MESSAGE = "Profile liked."
PASSED_MESSAGE = "Profile passed."
UNKNOWN_MESSAGE = "Like saved, but match status is unknown. Please retry."


@dataclass
class MatchOutcome:
    status: MatchOutcomeStatus
    match: Match | None = None
    reason: str | None = None

    @property
    def matched(self) -> bool:
        return self.status == MatchOutcomeStatus.matched


@dataclass
class SwipeResult:
    swipe: SwipeAction
    outcome: MatchOutcome | None
    message: str


def _sorted_dogs(a_dog_id: int, b_dog_id: int) -> tuple[int, int]:
    return (a_dog_id, b_dog_id) if a_dog_id < b_dog_id else (b_dog_id, a_dog_id)


def _owner_of(session: Session, dog_id: int) -> int:
    try:
        owner_id = session.exec(
            select(DogProfile.owner_id).where(DogProfile.id == dog_id)
        ).first()
    except SQLAlchemyError as err:
        raise RecordLookupError(f"Failed to look up owner of dog {dog_id}.") from err
    if owner_id is None:
        raise RecordLookupError(f"Owner of dog {dog_id} not found.")
    return int(owner_id)


def find_match(session: Session, x_dog_id: int, y_dog_id: int) -> Match | None:
    low, high = _sorted_dogs(x_dog_id, y_dog_id)
    statement = select(Match).where(Match.dog_a_id == low, Match.dog_b_id == high)
    try:
        return session.exec(statement).first()
    except SQLAlchemyError as err:
        raise RecordLookupError("Failed to look up match.") from err


def _insert_match(session: Session, match: Match) -> Match:
    session.add(match)
    try:
        session.commit()
    except IntegrityError as err:
        session.rollback()
        raise RaceLost() from err
    except SQLAlchemyError as err:
        session.rollback()
        raise WriteError("Failed to create match record.") from err
    session.refresh(match)
    return match


def create_or_adopt_match(
    session: Session,
    x_dog_id: int,
    y_dog_id: int,
    *,
    x_owner_id: int,
    y_owner_id: int,
) -> Match:
    """Return the one match for the unordered pair, creating it if absent.

    The unique constraint on (dog_a_id, dog_b_id) decides concurrent creates;
    the loser re-reads the winner's row.
    """
    existing = find_match(session, x_dog_id, y_dog_id)
    if existing is not None:
        return existing

    if x_dog_id < y_dog_id:
        match = Match(
            dog_a_id=x_dog_id,
            dog_b_id=y_dog_id,
            owner_a_id=x_owner_id,
            owner_b_id=y_owner_id,
        )
    else:
        match = Match(
            dog_a_id=y_dog_id,
            dog_b_id=x_dog_id,
            owner_a_id=y_owner_id,
            owner_b_id=x_owner_id,
        )

    try:
        created = _insert_match(session, match)
    except RaceLost:
        logger.info(
            "match for dogs %s/%s was created concurrently, adopting it",
            match.dog_a_id,
            match.dog_b_id,
        )
        winner = find_match(session, x_dog_id, y_dog_id)
        if winner is None:
            raise WriteError("Failed to create match record.") from None
        return winner

    logger.info(
        "created match %s for dogs %s/%s",
        created.id,
        created.dog_a_id,
        created.dog_b_id,
    )
    return created


def evaluate_match(
    session: Session,
    swiper_dog_id: int,
    swiped_dog_id: int,
) -> MatchOutcome:
    """Match the two dogs if each has liked the other.

    Store failures come back as a ``failed`` outcome carrying the reason, so
    callers can tell "unknown, retry" apart from "no match".
    """
    if swiper_dog_id == swiped_dog_id:
        return MatchOutcome(status=MatchOutcomeStatus.not_matched)

    try:
        forward = like_exists(session, swiper_dog_id, swiped_dog_id)
        backward = like_exists(session, swiped_dog_id, swiper_dog_id)
        if not (forward and backward):
            return MatchOutcome(status=MatchOutcomeStatus.not_matched)

        swiper_owner_id = _owner_of(session, swiper_dog_id)
        swiped_owner_id = _owner_of(session, swiped_dog_id)
        match = create_or_adopt_match(
            session,
            swiper_dog_id,
            swiped_dog_id,
            x_owner_id=swiper_owner_id,
            y_owner_id=swiped_owner_id,
        )
    except GrindgrrError as err:
        logger.warning(
            "match evaluation for dogs %s/%s failed: %s",
            swiper_dog_id,
            swiped_dog_id,
            err.detail,
        )
        return MatchOutcome(status=MatchOutcomeStatus.failed, reason=err.detail)

    return MatchOutcome(status=MatchOutcomeStatus.matched, match=match)


def handle_swipe(
    session: Session,
    swiper_dog_id: int,
    swiped_dog_id: int,
    decision: SwipeDecision,
) -> SwipeResult:
    # A WriteError here means the swipe itself was not saved
    swipe = record_swipe(session, swiper_dog_id, swiped_dog_id, decision)

    if decision == SwipeDecision.pass_:
        return SwipeResult(swipe=swipe, outcome=None, message=PASSED_MESSAGE)

    outcome = evaluate_match(session, swiper_dog_id, swiped_dog_id)
    if outcome.matched:
        message = MATCH_MESSAGE
    elif outcome.status == MatchOutcomeStatus.failed:
        message = UNKNOWN_MESSAGE
    else:
        message = LIKED_MESSAGE
    return SwipeResult(swipe=swipe, outcome=outcome, message=message)


def get_match_for_participant(
    session: Session,
    match_id: int,
    account_id: int,
) -> Match:
    match = session.get(Match, match_id)
    if match is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Match not found.",
        )
    if account_id not in {match.owner_a_id, match.owner_b_id}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not part of this match.",
        )
    return match


def list_matches_for_account(
    session: Session,
    account_id: int,
    *,
    limit: int,
    offset: int,
    match_status: MatchStatus | None = None,
) -> tuple[int, list[Match]]:
    match_table = cast(Table, Match.__table__)  # type: ignore[attr-defined]
    conditions = [
        or_(
            match_table.c.owner_a_id == account_id,
            match_table.c.owner_b_id == account_id,
        )
    ]
    if match_status is not None:
        conditions.append(match_table.c.status == match_status)

    total_result = session.exec(
        select(func.count()).select_from(match_table).where(*conditions)
    ).one()
    total_count = int(
        total_result[0] if isinstance(total_result, tuple) else total_result
    )

    statement = (
        select(Match)
        .where(*conditions)
        .order_by(desc(match_table.c.created_at), desc(match_table.c.id))
        .offset(offset)
        .limit(limit)
    )
    matches = list(session.exec(statement).all())
    return total_count, matches
