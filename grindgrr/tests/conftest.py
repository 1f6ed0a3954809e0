from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

import grindgrr.core.db as db_module
from grindgrr.main import app
from grindgrr.models.account import Account
from grindgrr.models.conversation import Conversation  # noqa: F401
from grindgrr.models.dog import DogProfile
from grindgrr.models.match import Match  # noqa: F401
from grindgrr.models.message import Message  # noqa: F401
from grindgrr.models.swipe import SwipeAction  # noqa: F401


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'grindgrr.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture()
def session(engine: Engine) -> Iterator[Session]:
    with Session(engine) as db_session:
        yield db_session


class Factory:
    def __init__(self, session: Session) -> None:
        self.session = session
        self._count = 0

    def account(self, display_name: str | None = None) -> Account:
        self._count += 1
        account = Account(
            email=f"owner{self._count}@example.com",
            display_name=display_name,
            password_hash="not-a-real-hash",
        )
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        return account

    def dog(self, owner: Account, name: str = "Rex") -> DogProfile:
        assert owner.id is not None
        dog = DogProfile(owner_id=owner.id, name=name, breed="Beagle", energy=7)
        self.session.add(dog)
        self.session.commit()
        self.session.refresh(dog)
        return dog


@pytest.fixture()
def factory(session: Session) -> Factory:
    return Factory(session)


@pytest.fixture(scope="module")
def client(request: pytest.FixtureRequest) -> Iterator[TestClient]:
    db_filename = f"{request.module.__name__.rsplit('.', 1)[-1]}.db"
    db_url = f"sqlite:///./{db_filename}"
    previous_db_url = os.environ.get("DATABASE_URL")
    os.environ["DATABASE_URL"] = db_url
    original_engine = db_module.engine
    test_engine = create_engine(
        db_url,
        connect_args={"check_same_thread": False},
    )
    db_module.engine = test_engine

    def override_get_session() -> Iterator[Session]:
        with Session(test_engine) as db_session:
            yield db_session

    app.dependency_overrides[db_module.get_session] = override_get_session
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(db_module.get_session, None)
    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()
    if previous_db_url is not None:
        os.environ["DATABASE_URL"] = previous_db_url
    else:
        os.environ.pop("DATABASE_URL", None)
    db_module.engine = original_engine
    if os.path.exists(db_filename):
        os.remove(db_filename)
