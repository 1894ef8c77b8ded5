from functools import lru_cache
from pathlib import Path
from typing import AsyncIterator

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Session

from src.config import get_settings

settings = get_settings()

# async driver -> sync driver used by the scheduler and the CLI
_SYNC_DRIVERS = {
    "+aiosqlite": "",
    "+asyncpg": "+psycopg2",
}


class Base(DeclarativeBase):
    pass


def to_sync_url(url: str) -> str:
    for async_driver, sync_driver in _SYNC_DRIVERS.items():
        url = url.replace(async_driver, sync_driver)
    return url


sync_database_url = to_sync_url(settings.database_url)

engine = create_async_engine(settings.database_url, echo=settings.debug)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@lru_cache
def get_sync_engine() -> Engine:
    return create_engine(sync_database_url, pool_pre_ping=True)


def get_sync_session() -> Session:
    return Session(get_sync_engine())


async def get_db() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


async def init_db() -> None:
    import src.models  # noqa: F401  register tables on Base.metadata

    ensure_sqlite_dir(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")
