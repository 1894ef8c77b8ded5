"""Password hashing and signed token helpers.

Access and refresh tokens are HS256 JWTs carrying ``userId`` and ``username``
claims, signed with two independent secrets.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext

from src.config import get_settings

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(user_id: int, username: str, secret: str, expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "username": username,
        "iat": now,
        "exp": now + expires_in,
        # unique per issue, so a fresh login always rotates the stored token
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def create_access_token(user_id: int, username: str) -> str:
    settings = get_settings()
    return _encode(
        user_id,
        username,
        settings.access_token_secret,
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user_id: int, username: str) -> str:
    settings = get_settings()
    return _encode(
        user_id,
        username,
        settings.refresh_token_secret,
        timedelta(days=settings.refresh_token_expire_days),
    )


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry; raises ``jwt.PyJWTError`` on failure."""
    return jwt.decode(token, get_settings().access_token_secret, algorithms=[ALGORITHM])


def decode_refresh_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, get_settings().refresh_token_secret, algorithms=[ALGORITHM])
