from typing import List

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.api.deps import get_media
from src.db.database import Base, get_db
from src.main import app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeMedia:
    """Stands in for CloudinaryClient; records uploads and deletions."""

    cloud_name = "demo"
    folder = "tanah-merapi"

    def __init__(self):
        self.uploaded: List[str] = []
        self.deleted: List[str] = []
        self.delete_succeeds = True

    async def upload(self, content, filename, content_type="application/octet-stream"):
        url = (
            "https://res.cloudinary.com/demo/image/upload/v1700000000/"
            f"tanah-merapi/upload-{len(self.uploaded) + 1}.jpg"
        )
        self.uploaded.append(url)
        return url

    async def delete_image(self, image_url):
        self.deleted.append(image_url)
        return self.delete_succeeds


@pytest.fixture
async def session_factory():
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.clear()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def fake_media(session_factory):
    media = FakeMedia()
    app.dependency_overrides[get_media] = lambda: media
    return media


@pytest.fixture
async def client(session_factory):
    # https so the secure refresh cookie round-trips
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as ac:
        yield ac


@pytest.fixture
async def auth_headers(client):
    resp = await client.post(
        "/api/auth/register", json={"username": "admin", "password": "secret123"}
    )
    assert resp.status_code == 201
    resp = await client.post(
        "/api/auth/login", json={"username": "admin", "password": "secret123"}
    )
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}
