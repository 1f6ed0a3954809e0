from __future__ import annotations

import threading
from itertools import permutations

import pytest
from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

import grindgrr.services.match_service as match_service
from grindgrr.core.errors import RecordLookupError, WriteError
from grindgrr.models.match import Match, MatchStatus
from grindgrr.models.swipe import SwipeDecision
from grindgrr.schemas.swipe import MatchOutcomeStatus
from grindgrr.services.match_service import (
    LIKED_MESSAGE,
    MATCH_MESSAGE,
    PASSED_MESSAGE,
    UNKNOWN_MESSAGE,
    create_or_adopt_match,
    evaluate_match,
    handle_swipe,
)
from grindgrr.services.swipe_service import record_swipe


def _match_count(session: Session) -> int:
    return int(session.exec(select(func.count()).select_from(Match)).one())


def _two_dogs(factory) -> tuple[int, int]:
    a = factory.dog(factory.account(), "Alpha")
    b = factory.dog(factory.account(), "Bravo")
    assert a.id is not None and b.id is not None
    return a.id, b.id


def test_mutual_like_matches_once_from_both_sides(session: Session, factory) -> None:
    a, b = _two_dogs(factory)

    first = handle_swipe(session, a, b, SwipeDecision.like)
    assert first.message == LIKED_MESSAGE
    assert first.outcome is not None
    assert first.outcome.status == MatchOutcomeStatus.not_matched

    second = handle_swipe(session, b, a, SwipeDecision.like)
    assert second.message == MATCH_MESSAGE
    assert second.outcome is not None and second.outcome.match is not None

    again_a = evaluate_match(session, a, b)
    again_b = evaluate_match(session, b, a)
    assert again_a.matched and again_b.matched
    assert again_a.match is not None and again_b.match is not None
    assert again_a.match.id == again_b.match.id == second.outcome.match.id
    assert _match_count(session) == 1


def test_match_row_is_normalised(session: Session, factory) -> None:
    a, b = _two_dogs(factory)
    record_swipe(session, b, a, SwipeDecision.like)
    record_swipe(session, a, b, SwipeDecision.like)

    outcome = evaluate_match(session, b, a)

    assert outcome.match is not None
    assert outcome.match.dog_a_id == min(a, b)
    assert outcome.match.dog_b_id == max(a, b)
    assert outcome.match.status == MatchStatus.active


def test_like_then_pass_never_matches(session: Session, factory) -> None:
    a, b = _two_dogs(factory)

    handle_swipe(session, a, b, SwipeDecision.like)
    passed = handle_swipe(session, b, a, SwipeDecision.pass_)

    assert passed.outcome is None
    assert passed.message == PASSED_MESSAGE
    assert not evaluate_match(session, a, b).matched
    assert not evaluate_match(session, b, a).matched
    assert _match_count(session) == 0


def test_like_after_pass_is_evaluated(session: Session, factory) -> None:
    a, b = _two_dogs(factory)

    handle_swipe(session, a, b, SwipeDecision.like)
    handle_swipe(session, b, a, SwipeDecision.pass_)
    result = handle_swipe(session, b, a, SwipeDecision.like)

    assert result.outcome is not None and result.outcome.matched


SWIPES = [
    ("a", "b", SwipeDecision.like),
    ("a", "b", SwipeDecision.like),
    ("b", "a", SwipeDecision.pass_),
    ("b", "a", SwipeDecision.like),
]


@pytest.mark.parametrize("order", list(permutations(range(len(SWIPES)))))
def test_match_exists_iff_both_likes_any_order(
    session: Session,
    factory,
    order: tuple[int, ...],
) -> None:
    a, b = _two_dogs(factory)
    ids = {"a": a, "b": b}
    seen_likes: set[tuple[str, str]] = set()

    for index in order:
        swiper, swiped, decision = SWIPES[index]
        handle_swipe(session, ids[swiper], ids[swiped], decision)
        if decision == SwipeDecision.like:
            seen_likes.add((swiper, swiped))
        expected = {("a", "b"), ("b", "a")} <= seen_likes
        assert (_match_count(session) == 1) is expected

    assert _match_count(session) == 1


def test_lost_race_adopts_existing_match(
    engine: Engine,
    factory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    a_owner = factory.account()
    b_owner = factory.account()
    a = factory.dog(a_owner, "Alpha")
    b = factory.dog(b_owner, "Bravo")
    assert a.id and b.id and a_owner.id and b_owner.id

    with Session(engine) as first_client:
        winner = create_or_adopt_match(
            first_client,
            a.id,
            b.id,
            x_owner_id=a_owner.id,
            y_owner_id=b_owner.id,
        )

    real_find = match_service.find_match
    calls = {"n": 0}

    def stale_find(session: Session, x: int, y: int) -> Match | None:
        # The second client's existence check ran before the first commit
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_find(session, x, y)

    monkeypatch.setattr(match_service, "find_match", stale_find)
    with Session(engine) as second_client:
        adopted = create_or_adopt_match(
            second_client,
            b.id,
            a.id,
            x_owner_id=b_owner.id,
            y_owner_id=a_owner.id,
        )
        assert adopted.id == winner.id
        assert _match_count(second_client) == 1
    assert calls["n"] == 2


def test_concurrent_evaluations_create_one_match(engine: Engine, factory) -> None:
    a_owner = factory.account()
    b_owner = factory.account()
    a = factory.dog(a_owner, "Alpha")
    b = factory.dog(b_owner, "Bravo")
    assert a.id and b.id
    with Session(engine) as setup:
        record_swipe(setup, a.id, b.id, SwipeDecision.like)
        record_swipe(setup, b.id, a.id, SwipeDecision.like)

    barrier = threading.Barrier(2)
    results: list[int] = []
    errors: list[BaseException] = []

    def client(swiper: int, swiped: int) -> None:
        try:
            with Session(engine) as client_session:
                barrier.wait()
                outcome = evaluate_match(client_session, swiper, swiped)
                assert outcome.match is not None and outcome.match.id is not None
                results.append(outcome.match.id)
        except BaseException as err:  # surfaced below
            errors.append(err)

    threads = [
        threading.Thread(target=client, args=(a.id, b.id)),
        threading.Thread(target=client, args=(b.id, a.id)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    assert len(results) == 2
    assert results[0] == results[1]
    with Session(engine) as check:
        assert _match_count(check) == 1


def test_owner_lookup_failure_is_distinct_from_no_match(
    session: Session,
    factory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    a, b = _two_dogs(factory)
    record_swipe(session, a, b, SwipeDecision.like)

    def missing_owner(session: Session, dog_id: int) -> int:
        raise RecordLookupError(f"Owner of dog {dog_id} not found.")

    monkeypatch.setattr(match_service, "_owner_of", missing_owner)
    result = handle_swipe(session, b, a, SwipeDecision.like)

    assert result.swipe.id is not None
    assert result.outcome is not None
    assert result.outcome.status == MatchOutcomeStatus.failed
    assert not result.outcome.matched
    assert result.message == UNKNOWN_MESSAGE
    assert _match_count(session) == 0

    monkeypatch.undo()
    retried = evaluate_match(session, b, a)
    assert retried.matched


def test_like_lookup_failure_keeps_swipe(
    session: Session,
    factory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    a, b = _two_dogs(factory)

    def broken_like_exists(session: Session, x: int, y: int) -> bool:
        raise RecordLookupError("Failed to check like.")

    monkeypatch.setattr(match_service, "like_exists", broken_like_exists)
    result = handle_swipe(session, a, b, SwipeDecision.like)

    assert result.swipe.id is not None
    assert result.outcome is not None
    assert result.outcome.status == MatchOutcomeStatus.failed
    assert result.outcome.reason == "Failed to check like."


def test_unsaved_match_is_failed_not_unmatched(
    session: Session,
    factory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    a, b = _two_dogs(factory)
    record_swipe(session, a, b, SwipeDecision.like)
    record_swipe(session, b, a, SwipeDecision.like)

    def broken_insert(session: Session, match: Match) -> Match:
        raise WriteError("Failed to create match record.")

    monkeypatch.setattr(match_service, "_insert_match", broken_insert)
    outcome = evaluate_match(session, a, b)

    assert outcome.status == MatchOutcomeStatus.failed
    assert outcome.reason == "Failed to create match record."
    assert outcome.match is None
    assert _match_count(session) == 0


def test_like_lookup_failure_during_evaluation_is_failed(
    session: Session,
    factory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    a, b = _two_dogs(factory)

    def broken_like_exists(session: Session, x: int, y: int) -> bool:
        raise RecordLookupError("Failed to check like.")

    monkeypatch.setattr(match_service, "like_exists", broken_like_exists)
    outcome = evaluate_match(session, a, b)

    assert outcome.status == MatchOutcomeStatus.failed
    assert outcome.reason == "Failed to check like."
