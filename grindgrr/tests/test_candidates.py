from __future__ import annotations

from sqlmodel import Session

from grindgrr.models.swipe import SwipeDecision
from grindgrr.services.candidate_service import first_dog_for_owner, next_candidate
from grindgrr.services.swipe_service import record_swipe


def test_next_candidate_skips_own_and_judged_dogs(session: Session, factory) -> None:
    me = factory.account()
    mine = factory.dog(me, "Rex")
    my_other = factory.dog(me, "Max")
    others = [factory.dog(factory.account(), f"Dog {i}") for i in range(3)]
    assert mine.id is not None

    candidate = next_candidate(session, mine.id)
    assert candidate is not None
    assert candidate.id == others[0].id
    assert candidate.id != my_other.id

    record_swipe(session, mine.id, others[0].id or 0, SwipeDecision.like)
    record_swipe(session, mine.id, others[1].id or 0, SwipeDecision.pass_)

    candidate = next_candidate(session, mine.id)
    assert candidate is not None
    assert candidate.id == others[2].id

    record_swipe(session, mine.id, others[2].id or 0, SwipeDecision.pass_)
    assert next_candidate(session, mine.id) is None


def test_next_candidate_is_stable_without_new_swipes(session: Session, factory) -> None:
    me = factory.account()
    mine = factory.dog(me, "Rex")
    for i in range(4):
        factory.dog(factory.account(), f"Dog {i}")
    assert mine.id is not None

    picks = {next_candidate(session, mine.id).id for _ in range(3)}  # type: ignore[union-attr]
    assert len(picks) == 1


def test_first_dog_for_owner(session: Session, factory) -> None:
    me = factory.account()
    nobody = factory.account()
    first = factory.dog(me, "Rex")
    factory.dog(me, "Max")

    found = first_dog_for_owner(session, me.id or 0)
    assert found is not None and found.id == first.id
    assert first_dog_for_owner(session, nobody.id or 0) is None
