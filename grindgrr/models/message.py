from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index
from sqlmodel import Field, SQLModel


class Message(SQLModel, table=True):
    __tablename__ = "message"
    __table_args__ = (
        Index("ix_message_conversation_order", "conversation_id", "created_at", "id"),
    )

    id: int | None = Field(default=None, primary_key=True)
    conversation_id: int = Field(
        foreign_key="conversation.id",
        nullable=False,
        index=True,
    )
    sender_owner_id: int = Field(
        foreign_key="account.id",
        nullable=False,
        index=True,
    )
    content: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class MessageOut(SQLModel):
    id: int
    conversation_id: int
    sender_owner_id: int
    content: str
    created_at: datetime
