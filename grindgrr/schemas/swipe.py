from enum import Enum

from pydantic import BaseModel

from grindgrr.models.dog import DogProfileOut
from grindgrr.models.match import MatchOut
from grindgrr.models.swipe import SwipeActionOut, SwipeDecision


class MatchOutcomeStatus(str, Enum):
    matched = "matched"
    not_matched = "not_matched"
    failed = "failed"


class SwipeCreate(BaseModel):
    swiper_dog_id: int
    swiped_dog_id: int
    decision: SwipeDecision


class MatchEvaluateRequest(BaseModel):
    swiper_dog_id: int
    swiped_dog_id: int


class MatchOutcomeOut(BaseModel):
    status: MatchOutcomeStatus
    matched: bool
    match: MatchOut | None = None
    reason: str | None = None


class SwipeResultOut(BaseModel):
    swipe: SwipeActionOut
    outcome: MatchOutcomeOut | None = None
    message: str


class CandidateOut(BaseModel):
    candidate: DogProfileOut | None = None
    message: str | None = None
