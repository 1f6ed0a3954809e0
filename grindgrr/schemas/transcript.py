from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator


def _as_naive_utc(value: datetime | None) -> datetime | None:
    # Stored timestamps are naive UTC; aware ones are folded onto that
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TranscriptEntry(BaseModel):
    """One chat line as shown to a viewer.

    Live insert-events arrive without ``sender_display_name``; ``resolved``
    stays False until the sender lookup succeeds.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    conversation_id: int
    sender_owner_id: int
    content: str
    created_at: datetime
    sender_display_name: str | None = None
    resolved: bool = False

    @field_validator("created_at")
    @classmethod
    def _normalise_created_at(cls, value: datetime | None) -> datetime | None:
        return _as_naive_utc(value)

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.id)


class LiveMessageEvent(BaseModel):
    """Insert-event record as published on the change feed.

    Only ``id`` is guaranteed; the rest is filled in by the sender lookup.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    conversation_id: int | None = None
    sender_owner_id: int | None = None
    content: str | None = None
    created_at: datetime | None = None

    @field_validator("created_at")
    @classmethod
    def _normalise_created_at(cls, value: datetime | None) -> datetime | None:
        return _as_naive_utc(value)

    def as_unresolved(self, conversation_id: int) -> TranscriptEntry | None:
        if self.sender_owner_id is None or self.content is None or self.created_at is None:
            return None
        return TranscriptEntry(
            id=self.id,
            conversation_id=conversation_id,
            sender_owner_id=self.sender_owner_id,
            content=self.content,
            created_at=self.created_at,
        )
