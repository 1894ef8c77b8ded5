from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import jwt
from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from src.config import get_settings
from src.models.user import User


class AuthError(Exception):
    """Authentication failure carrying the HTTP status it maps to."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


class AuthService:
    """Register/login/refresh/logout over the ``users`` table.

    A refresh token is honoured only while it is the exact value stored on a
    user row, so clearing or replacing that value revokes it immediately.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def _find_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def _find_by_refresh_token(self, token: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.refresh_token == token))
        return result.scalar_one_or_none()

    async def register(self, username: str, password: str) -> User:
        if not username or not password:
            raise AuthError(400, "Username and password are required")

        min_length = self.settings.password_min_length
        if len(password) < min_length:
            raise AuthError(
                400, f"Password must be at least {min_length} characters long"
            )

        if await self._find_by_username(username):
            raise AuthError(400, "Username already exists")

        user = User(username=username, password=hash_password(password))
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # lost a race with a concurrent registration
            await self.db.rollback()
            raise AuthError(400, "Username already exists")
        await self.db.refresh(user)
        logger.info(f"Registered user {username}")
        return user

    async def login(self, username: str, password: str) -> LoginResult:
        user = await self._find_by_username(username)
        if user is None:
            raise AuthError(404, "User not found")

        if not verify_password(password, user.password):
            logger.warning(f"Failed login for {username}")
            raise AuthError(400, "Invalid credentials")

        access_token = create_access_token(user.id, user.username)
        refresh_token = create_refresh_token(user.id, user.username)

        await self.db.execute(
            update(User).where(User.id == user.id).values(refresh_token=refresh_token)
        )
        await self.db.commit()
        logger.info(f"User {username} logged in")
        return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)

    async def refresh(self, cookie_token: Optional[str]) -> str:
        """Mint a new access token; the refresh token itself is left unchanged."""
        if not cookie_token:
            raise AuthError(401, "Unauthorized - No refresh token")

        user = await self._find_by_refresh_token(cookie_token)
        if user is None:
            raise AuthError(403, "Forbidden - Invalid refresh token")

        try:
            decode_refresh_token(cookie_token)
        except jwt.PyJWTError as e:
            logger.warning(f"Refresh token verification failed for {user.username}: {e}")
            raise AuthError(403, "Forbidden - Token verification failed") from e

        return create_access_token(user.id, user.username)

    async def logout(self, cookie_token: Optional[str]) -> None:
        if not cookie_token:
            return

        user = await self._find_by_refresh_token(cookie_token)
        if user is None:
            return

        await self.db.execute(
            update(User).where(User.id == user.id).values(refresh_token=None)
        )
        await self.db.commit()
        logger.info(f"User {user.username} logged out")
