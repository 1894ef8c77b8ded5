from typing import Any, Dict, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import require_user
from src.auth.service import AuthError, AuthService
from src.config import get_settings
from src.db.database import get_db

router = APIRouter(prefix="/api/auth", tags=["auth"])

REFRESH_COOKIE = "refreshToken"


class CredentialsRequest(BaseModel):
    username: str
    password: str


def _cookie_options() -> Dict[str, Any]:
    # cross-site frontend: secure + SameSite=None
    return {
        "httponly": True,
        "secure": True,
        "samesite": "none",
        "domain": get_settings().cookie_domain or None,
    }


@router.post("/register", status_code=201)
async def register(body: CredentialsRequest, db: AsyncSession = Depends(get_db)):
    try:
        user = await AuthService(db).register(body.username, body.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return {
        "message": "Admin user registered successfully",
        "user": {
            "id": user.id,
            "username": user.username,
            "createdAt": user.created_at.isoformat(),
        },
    }


@router.post("/login")
async def login(
    body: CredentialsRequest, response: Response, db: AsyncSession = Depends(get_db)
):
    try:
        result = await AuthService(db).login(body.username, body.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    settings = get_settings()
    response.set_cookie(
        REFRESH_COOKIE,
        result.refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        **_cookie_options(),
    )
    return {
        "accessToken": result.access_token,
        "user": {"id": result.user.id, "username": result.user.username},
    }


@router.get("/token")
async def refresh_access_token(
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    db: AsyncSession = Depends(get_db),
):
    try:
        access_token = await AuthService(db).refresh(refresh_token)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return {"accessToken": access_token}


@router.delete("/logout")
async def logout(
    response: Response,
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).logout(refresh_token)
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options())
    return {"message": "Logged out"}


@router.get("/me")
async def me(claims: Dict[str, Any] = Depends(require_user)):
    return {"id": claims["userId"], "username": claims["username"]}
