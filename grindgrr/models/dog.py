from __future__ import annotations

from datetime import datetime

from sqlmodel import Field, SQLModel


class DogProfileBase(SQLModel):
    name: str
    breed: str | None = None
    size: str | None = None
    age: int | None = None
    energy: int | None = Field(default=None, ge=1, le=10)
    photo_url: str | None = None


class DogProfile(DogProfileBase, table=True):
    __tablename__ = "dog_profile"

    id: int | None = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="account.id", index=True, nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class DogProfileCreate(DogProfileBase):
    pass


class DogProfileUpdate(SQLModel):
    name: str | None = None
    breed: str | None = None
    size: str | None = None
    age: int | None = None
    energy: int | None = Field(default=None, ge=1, le=10)
    photo_url: str | None = None


class DogProfileOut(DogProfileBase):
    id: int
    owner_id: int

    model_config = {"from_attributes": True}
