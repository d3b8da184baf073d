from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from careslots.core.config import settings


def to_async_url(database_url: str) -> str:
    """Use asyncpg for Postgres. asyncpg does not accept psycopg params like sslmode/channel_binding,
    so those are stripped; SSL is enabled via connect_args instead."""
    parsed = urlparse(database_url)
    if parsed.scheme not in ("postgresql", "postgres"):
        return database_url
    query = parse_qs(parsed.query, keep_blank_values=True)
    query.pop("sslmode", None)
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    return urlunparse(
        ("postgresql+asyncpg", parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment)
    )


def engine_kwargs(async_url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": settings.env == "development", "pool_pre_ping": True}
    if async_url.startswith("postgresql+asyncpg"):
        kwargs.update(pool_size=5, max_overflow=10)
        if settings.database_ssl:
            kwargs["connect_args"] = {"ssl": True}
    return kwargs


async_database_url = to_async_url(settings.database_url)

engine = create_async_engine(async_database_url, **engine_kwargs(async_database_url))

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
