"""Async database engine and session management.

Configures the SQLAlchemy async engine with connection pooling and
provides the session helpers every store call runs inside: one session per
unit of work, committed on success and rolled back on any exception.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fost_accounts.core.config import settings
from fost_accounts.models.base import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    # SQLite ignores FOREIGN KEY / ON DELETE CASCADE unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configure_engine(engine: AsyncEngine) -> AsyncEngine:
    """Apply per-dialect connection setup to an engine.

    Args:
        engine: Engine created with create_async_engine().

    Returns:
        The same engine, for chaining.
    """
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


engine = configure_engine(
    create_async_engine(
        settings.database_url,
        echo=settings.environment == "development",
        pool_pre_ping=True,
    )
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for one unit of work."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


session_scope = asynccontextmanager(get_db)


async def init_db(target: AsyncEngine | None = None) -> None:
    """Create the account tables if they do not exist.

    Alembic is the normal path for managed databases; this is the
    one-shot initialisation for fresh stores and tests.

    Args:
        target: Engine to initialise. Defaults to the module engine.
    """
    target = target or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(
        "Account schema ready: %s", ", ".join(sorted(Base.metadata.tables))
    )
