"""Async SQLAlchemy engine and store initialization.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection
pooling, async_sessionmaker for per-operation sessions.

The store handle is NOT a module-level global. init_store() builds it
once in the app lifespan and returns a StoreInit value: either a ready
DocumentStore or the reason it failed. The failure is kept, not raised,
so the server still starts; every data request then fails fast through
StoreInit.require().
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from grindlink.config import Settings
from grindlink.db.models import Base
from grindlink.db.store import DocumentStore
from grindlink.errors import InitializationError

logger = structlog.get_logger()


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the engine. SQLite (tests, local runs) gets the default pool."""
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(settings.database_url, echo=settings.debug)
    # Connection pool: min 5, max 20 connections.
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=15,
    )


@dataclass(frozen=True)
class StoreInit:
    """Outcome of store initialization — exactly one of store/error is set."""

    store: Optional[DocumentStore] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.store is not None

    def require(self) -> DocumentStore:
        if self.store is None:
            raise InitializationError()
        return self.store

    @classmethod
    def failed(cls, error: str) -> "StoreInit":
        return cls(error=error)


async def init_store(settings: Settings) -> StoreInit:
    """Connect, create the schema, and wrap the engine in a DocumentStore."""
    engine = None
    try:
        engine = build_engine(settings)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error("grindlink.store_init_failed", error=str(e))
        if engine is not None:
            await engine.dispose()
        return StoreInit.failed(str(e))

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    logger.info("grindlink.store_initialized")
    return StoreInit(store=DocumentStore(engine, session_factory))
