from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from grindgrr.core.db import get_session
from grindgrr.core.security import (
    create_access_token,
    hash_password,
    verify_password,
)
from grindgrr.models.account import Account
from grindgrr.schemas.auth import LoginRequest, SignupRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])

SessionDep = Annotated[Session, Depends(get_session)]


@router.post("/signup", response_model=TokenResponse)
def signup(payload: SignupRequest, session: SessionDep) -> TokenResponse:
    statement = select(Account).where(Account.email == payload.email)
    exists = session.exec(statement).first()
    if exists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    account = Account(
        email=payload.email,
        display_name=payload.display_name,
        password_hash=hash_password(payload.password),
    )
    session.add(account)
    session.commit()
    session.refresh(account)
    return TokenResponse(access_token=create_access_token(sub=account.email))


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, session: SessionDep) -> TokenResponse:
    statement = select(Account).where(Account.email == payload.email)
    account = session.exec(statement).first()
    if not account or not verify_password(payload.password, account.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    return TokenResponse(access_token=create_access_token(sub=account.email))
