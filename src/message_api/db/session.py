from typing import AsyncGenerator

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from message_api.core.config import get_settings

# Deterministic constraint and index names across PostgreSQL and SQLite.
metadata = MetaData(naming_convention={
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
})


class Base(DeclarativeBase):
    metadata = metadata


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    # the store may restart underneath us; stale pooled connections are dropped
    return {"pool_pre_ping": True}


_url = get_settings().database_url_async
engine = create_async_engine(_url, echo=False, **_engine_options(_url))
# Rows stay readable after commit; routes render them once the write is done.
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """Create missing tables; there are no migrations to run."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
