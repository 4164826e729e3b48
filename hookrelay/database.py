"""
Database engine and session management.

The engine and session factory belong to an application instance and are
stored on ``app.state``; routes receive a session through ``get_db``.
"""
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hookrelay.config import Settings
from hookrelay.models.base import Base

# Registers the webhook tables on Base.metadata
from hookrelay.models import webhook  # noqa: F401


def create_engine(config: Settings) -> AsyncEngine:
    """Create an async SQLAlchemy engine from settings."""
    kwargs: dict = {"echo": config.DEBUG}

    # SQLite doesn't support pool settings in the same way
    if config.DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(config.DATABASE_URL, **kwargs)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    kwargs["pool_pre_ping"] = True
    return create_async_engine(config.DATABASE_URL, **kwargs)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_all_tables(engine: AsyncEngine):
    """Create all tables in the database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all_tables(engine: AsyncEngine):
    """Drop all tables in the database (for testing)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency yielding a session from the app's session factory.
    
    Uncommitted work is rolled back when the session closes.
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session
