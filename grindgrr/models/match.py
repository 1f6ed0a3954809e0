from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, Column, UniqueConstraint
from sqlalchemy.types import Enum as SAEnum
from sqlmodel import Field, SQLModel


class MatchStatus(str, Enum):
    active = "active"
    ended = "ended"


class Match(SQLModel, table=True):
    __tablename__ = "match"
    # dog_a_id < dog_b_id, so one row covers the unordered pair
    __table_args__ = (
        UniqueConstraint("dog_a_id", "dog_b_id", name="uq_match_dogs"),
        CheckConstraint("dog_a_id < dog_b_id", name="ck_match_dog_order"),
    )

    id: int | None = Field(default=None, primary_key=True)
    dog_a_id: int = Field(foreign_key="dog_profile.id", index=True, nullable=False)
    dog_b_id: int = Field(foreign_key="dog_profile.id", index=True, nullable=False)
    owner_a_id: int = Field(foreign_key="account.id", index=True, nullable=False)
    owner_b_id: int = Field(foreign_key="account.id", index=True, nullable=False)
    status: MatchStatus = Field(
        default=MatchStatus.active,
        sa_column=Column(
            SAEnum(MatchStatus, name="matchstatus"),
            nullable=False,
            server_default="active",
        ),
    )
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class MatchOut(SQLModel):
    id: int
    dog_a_id: int
    dog_b_id: int
    owner_a_id: int
    owner_b_id: int
    status: MatchStatus
    created_at: datetime
