from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class Account(SQLModel, table=True):
    __tablename__ = "account"
    __table_args__ = (sa.UniqueConstraint("email", name="uq_account_email"),)

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    display_name: str | None = None
    password_hash: str
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
