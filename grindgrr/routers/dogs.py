from __future__ import annotations

from typing import Annotated, cast

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import func
from sqlalchemy.sql.schema import Table
from sqlmodel import Session, select

from grindgrr.core.db import get_session
from grindgrr.core.security import subject_from_token
from grindgrr.models.account import Account
from grindgrr.models.dog import (
    DogProfile,
    DogProfileCreate,
    DogProfileOut,
    DogProfileUpdate,
)

router = APIRouter(prefix="/dogs", tags=["dogs"])
bearer = HTTPBearer()

SessionDep = Annotated[Session, Depends(get_session)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials, Depends(bearer)]


def account_for_token(session: Session, token: str) -> Account | None:
    email = subject_from_token(token)
    if not email:
        return None
    return session.exec(select(Account).where(Account.email == email)).first()


def get_current_account(creds: CredentialsDep, session: SessionDep) -> Account:
    account = account_for_token(session, creds.credentials)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return account


CurrentAccountDep = Annotated[Account, Depends(get_current_account)]


def require_account_id(account: Account) -> int:
    if account.id is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="authenticated account missing identifier",
        )
    return account.id


def _get_owned_dog(session: Session, dog_id: int, owner_id: int) -> DogProfile:
    dog = session.get(DogProfile, dog_id)
    if dog is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="dog not found",
        )
    if dog.owner_id != owner_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="not authorized to modify this dog",
        )
    return dog


@router.post("", response_model=DogProfileOut)
def create_dog(
    payload: DogProfileCreate,
    current: CurrentAccountDep,
    session: SessionDep,
) -> DogProfile:
    owner_id = require_account_id(current)
    dog = DogProfile(owner_id=owner_id, **payload.model_dump())

    try:
        session.add(dog)
        session.commit()
        session.refresh(dog)
    except Exception as err:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to create dog profile",
        ) from err
    return dog


@router.get("", response_model=list[DogProfileOut])
def list_my_dogs(
    current: CurrentAccountDep,
    session: SessionDep,
    response: Response,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> list[DogProfile]:
    owner_id = require_account_id(current)
    dog_table = cast(Table, DogProfile.__table__)  # type: ignore[attr-defined]

    total_result = session.exec(
        select(func.count(dog_table.c.id)).where(dog_table.c.owner_id == owner_id)
    )
    response.headers["X-Total-Count"] = str(int(total_result.first() or 0))

    statement = (
        select(DogProfile)
        .where(DogProfile.owner_id == owner_id)
        .order_by(dog_table.c.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(session.exec(statement).all())


@router.get("/{dog_id}", response_model=DogProfileOut)
def get_dog(dog_id: int, current: CurrentAccountDep, session: SessionDep) -> DogProfile:
    dog = session.get(DogProfile, dog_id)
    if dog is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="dog not found",
        )
    return dog


@router.patch("/{dog_id}", response_model=DogProfileOut)
def update_dog(
    dog_id: int,
    payload: DogProfileUpdate,
    current: CurrentAccountDep,
    session: SessionDep,
) -> DogProfile:
    dog = _get_owned_dog(session, dog_id, require_account_id(current))
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(dog, field, value)
    session.add(dog)
    session.commit()
    session.refresh(dog)
    return dog
