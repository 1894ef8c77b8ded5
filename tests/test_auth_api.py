import re
from unittest.mock import AsyncMock, patch

import jwt
from sqlalchemy import select, update

from src.auth.security import decode_access_token
from src.auth.service import AuthService
from src.models.user import User


def refresh_cookie(resp):
    header = resp.headers.get("set-cookie", "")
    match = re.search(r"refreshToken=([^;]*)", header)
    return match.group(1) if match else None


async def register_and_login(client, username="admin", password="secret123"):
    await client.post("/api/auth/register", json={"username": username, "password": password})
    return await client.post("/api/auth/login", json={"username": username, "password": password})


async def test_register_then_login_returns_verifiable_token(client):
    resp = await client.post(
        "/api/auth/register", json={"username": "merapi", "password": "lava-2010"}
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["user"]["username"] == "merapi"
    assert "password" not in body["user"]

    resp = await client.post(
        "/api/auth/login", json={"username": "merapi", "password": "lava-2010"}
    )
    assert resp.status_code == 200
    data = resp.json()
    claims = decode_access_token(data["accessToken"])
    assert claims["username"] == "merapi"
    assert claims["userId"] == data["user"]["id"]


async def test_password_is_stored_hashed(client, session_factory):
    await client.post("/api/auth/register", json={"username": "hash", "password": "secret123"})
    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.username == "hash"))).scalar_one()
    assert user.password != "secret123"
    assert user.refresh_token is None


async def test_register_rejects_short_password(client):
    resp = await client.post("/api/auth/register", json={"username": "a", "password": "123"})
    assert resp.status_code == 400
    assert "at least 6" in resp.json()["detail"]


async def test_register_rejects_taken_username(client):
    await client.post("/api/auth/register", json={"username": "dup", "password": "secret123"})
    resp = await client.post(
        "/api/auth/register", json={"username": "dup", "password": "another123"}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Username already exists"


async def test_register_race_on_username_is_a_client_error(client, session_factory):
    await client.post("/api/auth/register", json={"username": "dup", "password": "secret123"})

    # the existence check misses a row committed by a concurrent request
    with patch.object(AuthService, "_find_by_username", AsyncMock(return_value=None)):
        resp = await client.post(
            "/api/auth/register", json={"username": "dup", "password": "other-pass"}
        )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Username already exists"
    async with session_factory() as session:
        users = (await session.execute(select(User))).scalars().all()
    assert [u.username for u in users] == ["dup"]


async def test_login_unknown_user(client):
    resp = await client.post("/api/auth/login", json={"username": "ghost", "password": "whatever"})
    assert resp.status_code == 404


async def test_login_wrong_password_issues_nothing(client, session_factory):
    await client.post("/api/auth/register", json={"username": "admin", "password": "secret123"})
    resp = await client.post("/api/auth/login", json={"username": "admin", "password": "wrong-pass"})

    assert resp.status_code == 400
    assert "accessToken" not in resp.json()
    assert refresh_cookie(resp) is None
    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.username == "admin"))).scalar_one()
    assert user.refresh_token is None


async def test_login_sets_secure_cross_site_cookie(client, session_factory):
    resp = await register_and_login(client)
    header = resp.headers["set-cookie"].lower()

    assert "httponly" in header
    assert "secure" in header
    assert "samesite=none" in header
    assert "max-age=86400" in header

    token = refresh_cookie(resp)
    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.username == "admin"))).scalar_one()
    assert user.refresh_token == token


async def test_refresh_without_cookie_is_unauthorized(client):
    resp = await client.get("/api/auth/token")
    assert resp.status_code == 401


async def test_refresh_issues_new_access_token(client, session_factory):
    resp = await register_and_login(client)
    token = refresh_cookie(resp)

    resp = await client.get("/api/auth/token", headers={"Cookie": f"refreshToken={token}"})
    assert resp.status_code == 200
    assert decode_access_token(resp.json()["accessToken"])["username"] == "admin"

    # refresh token itself is unchanged
    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.username == "admin"))).scalar_one()
    assert user.refresh_token == token


async def test_refresh_with_unknown_token_is_forbidden(client):
    await register_and_login(client)
    resp = await client.get("/api/auth/token", headers={"Cookie": "refreshToken=not-a-token"})
    assert resp.status_code == 403


async def test_refresh_with_stored_but_badly_signed_token_is_forbidden(client, session_factory):
    await register_and_login(client)
    forged = jwt.encode({"userId": 1, "username": "admin"}, "wrong-secret", algorithm="HS256")
    async with session_factory() as session:
        await session.execute(
            update(User).where(User.username == "admin").values(refresh_token=forged)
        )
        await session.commit()

    resp = await client.get("/api/auth/token", headers={"Cookie": f"refreshToken={forged}"})
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Forbidden - Token verification failed"


async def test_refresh_after_logout_is_forbidden(client, session_factory):
    resp = await register_and_login(client)
    token = refresh_cookie(resp)
    cookie = {"Cookie": f"refreshToken={token}"}

    resp = await client.delete("/api/auth/logout", headers=cookie)
    assert resp.status_code == 200
    assert "max-age=0" in resp.headers["set-cookie"].lower()

    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.username == "admin"))).scalar_one()
    assert user.refresh_token is None

    resp = await client.get("/api/auth/token", headers=cookie)
    assert resp.status_code == 403


async def test_logout_is_idempotent(client):
    resp = await client.delete("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out"}

    resp = await client.delete("/api/auth/logout", headers={"Cookie": "refreshToken=stale"})
    assert resp.status_code == 200


async def test_second_login_revokes_previous_refresh_token(client):
    first = refresh_cookie(await register_and_login(client))
    second_resp = await client.post(
        "/api/auth/login", json={"username": "admin", "password": "secret123"}
    )
    second = refresh_cookie(second_resp)

    assert first != second
    resp = await client.get("/api/auth/token", headers={"Cookie": f"refreshToken={first}"})
    assert resp.status_code == 403
    resp = await client.get("/api/auth/token", headers={"Cookie": f"refreshToken={second}"})
    assert resp.status_code == 200


async def test_me_requires_bearer_token(client, auth_headers):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 401

    resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 403

    resp = await client.get("/api/auth/me", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["username"] == "admin"
