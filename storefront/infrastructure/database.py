"""Database engine and unit-of-work sessions for the document store.

One engine per process is created from settings. ``session_scope`` opens a
session that commits when the block finishes and rolls back when it raises.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from storefront.infrastructure.config import settings

logger = structlog.get_logger()


def build_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async engine, defaulting to the configured database URL."""
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )


engine = build_engine()

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Declarative base for the documents table
Base = declarative_base()


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Open a session for one unit of work.

    Example usage:
        async with session_scope() as session:
            await get_variation_repository(session).save(variation)

    Yields:
        AsyncSession, committed on success and rolled back on error.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.warning("Rolling back catalog session")
            await session.rollback()
            raise
