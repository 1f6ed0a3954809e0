from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from grindgrr.core.config import settings


def _connect_args(url: str) -> dict[str, Any]:
    # SQLite connections are shared between the threadpool and the event loop
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine: Engine = create_engine(
    settings.database_url,
    connect_args=_connect_args(settings.database_url),
)


def init_db() -> None:
    # Register every table on the metadata before create_all
    from grindgrr.models import (  # noqa: F401
        account,
        conversation,
        dog,
        match,
        message,
        swipe,
    )

    SQLModel.metadata.create_all(engine)


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session
