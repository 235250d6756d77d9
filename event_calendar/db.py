from collections.abc import AsyncIterator
from typing import Any, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from event_calendar.config import get_settings


def build_engine(database_url: str) -> AsyncEngine:
    """Async engine for ``database_url``.

    In-memory SQLite must share one connection or each session would
    see an empty database.
    """
    url = make_url(database_url)
    options: Dict[str, Any] = {"echo": False, "future": True}
    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


settings = get_settings()
engine: AsyncEngine = build_engine(settings.database_url)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
    """Create the events table and its indexes if they do not exist."""

    from event_calendar import models  # noqa: WPS433 - imported lazily to avoid circular deps

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)


async def dispose_db() -> None:
    await engine.dispose()


async def get_session() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
