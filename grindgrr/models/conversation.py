from __future__ import annotations

from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Conversation(SQLModel, table=True):
    __tablename__ = "conversation"
    __table_args__ = (
        UniqueConstraint("match_id", name="uq_conversation_match"),
    )

    id: int | None = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", nullable=False, index=True)
    participant_a_id: int = Field(foreign_key="account.id", nullable=False, index=True)
    participant_b_id: int = Field(foreign_key="account.id", nullable=False, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class ConversationOut(SQLModel):
    id: int
    match_id: int
    participant_a_id: int
    participant_b_id: int
    created_at: datetime
