from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import Column
from sqlalchemy.types import Enum as SAEnum
from sqlmodel import Field, SQLModel


class SwipeDecision(str, Enum):
    like = "like"
    pass_ = "pass"


class SwipeAction(SQLModel, table=True):
    # Append-only ledger; repeated identical rows are allowed
    __tablename__ = "swipe_action"

    id: int | None = Field(default=None, primary_key=True)
    swiper_dog_id: int = Field(
        foreign_key="dog_profile.id",
        index=True,
        nullable=False,
    )
    swiped_dog_id: int = Field(
        foreign_key="dog_profile.id",
        index=True,
        nullable=False,
    )
    decision: SwipeDecision = Field(
        sa_column=Column(
            SAEnum(
                SwipeDecision,
                name="swipedecision",
                values_callable=lambda enum: [member.value for member in enum],
            ),
            nullable=False,
        ),
    )
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class SwipeActionOut(SQLModel):
    id: int
    swiper_dog_id: int
    swiped_dog_id: int
    decision: SwipeDecision
    created_at: datetime
