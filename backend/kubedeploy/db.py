from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from kubedeploy.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base ORM model."""


class Database:
    """Async engine plus session factory for the user store.

    Constructed once at startup and shared by every request; the engine's
    connection pool is safe for concurrent use.
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        self._engine: AsyncEngine = create_async_engine(url, future=True, echo=echo, pool_pre_ping=True)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    async def init_schema(self) -> None:
        from kubedeploy import models  # noqa: F401 - ensure model metadata is registered

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()


async def connect_database(url: str | None, *, echo: bool = False) -> Database | None:
    """Connect and migrate; returns None instead of raising when unreachable."""
    if not url:
        logger.warning("database.not_configured", detail="DATABASE_URL not set, authentication features will be disabled")
        return None

    try:
        database = Database(url, echo=echo)
    except (SQLAlchemyError, ImportError) as exc:
        logger.warning("database.invalid_url", error=str(exc), detail="Authentication features will be disabled")
        return None

    try:
        await database.init_schema()
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("database.connect_failed", error=str(exc), detail="Authentication features will be disabled")
        await database.dispose()
        return None

    logger.info("database.connected", dialect=database.engine.dialect.name)
    return database
