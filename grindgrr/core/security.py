from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, cast

import jwt
from passlib.context import CryptContext

from grindgrr.core.config import settings

_ALGO: str = settings.jwt_algorithm

# Default: argon2; bcrypt variants are only kept for verifying legacy hashes
_pwd = CryptContext(
    schemes=["argon2", "bcrypt_sha256", "bcrypt"],
    default="argon2",
    deprecated="auto",
)


def hash_password(raw: str) -> str:
    return cast(str, _pwd.hash(raw))


def verify_password(raw: str, hashed: str) -> bool:
    return cast(bool, _pwd.verify(raw, hashed))


def create_access_token(sub: str, *, minutes: int | None = None) -> str:
    minutes = minutes or settings.access_token_expire_minutes
    expire = datetime.utcnow() + timedelta(minutes=minutes)
    payload: dict[str, Any] = {"sub": sub, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=_ALGO)


def decode_token(token: str) -> dict[str, Any]:
    return cast(
        dict[str, Any],
        jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[_ALGO],
        ),
    )


def subject_from_token(token: str) -> str | None:
    """Return the token subject (account email), or None for any invalid token."""
    try:
        payload = decode_token(token)
    except jwt.PyJWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None
