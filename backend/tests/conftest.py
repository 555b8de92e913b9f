"""Shared fixtures for the account store tests.

Every test gets a fresh in-memory SQLite database (aiosqlite) with the
schema created from the ORM metadata and foreign keys enforced, so no
external database server is needed.
"""

from collections.abc import AsyncGenerator, Iterator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from fost_accounts.core.config import settings
from fost_accounts.core.database import configure_engine, init_db
from fost_accounts.models import User

TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Test user (consistent across tests)
TEST_USER_ID = "u1"
TEST_REGISTERED_AT = datetime(2024, 1, 1, tzinfo=UTC)

# Low bcrypt.kdf cost so hashing does not dominate test time
_TEST_KDF_ROUNDS = 4


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory test database with the account schema."""
    # StaticPool keeps the single in-memory connection alive across sessions
    engine = configure_engine(
        create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    )
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create the test user in the database.

    Args:
        db_session: Database session from db_session fixture.

    Returns:
        User model instance.
    """
    user = User(
        user_id=TEST_USER_ID,
        timestamp_register=TEST_REGISTERED_AT,
        timestamp_active=TEST_REGISTERED_AT,
        crystals=0,
        experience=0,
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Create a second user for cross-account tests."""
    user = User(
        user_id="u2",
        timestamp_register=TEST_REGISTERED_AT,
        timestamp_active=TEST_REGISTERED_AT,
        crystals=0,
        experience=0,
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


@pytest.fixture(autouse=True)
def fast_password_hashing() -> Iterator[None]:
    """Lower the password KDF cost during tests.

    Yields:
        None (autouse fixture).
    """
    original_rounds = settings.password_kdf_rounds
    settings.password_kdf_rounds = _TEST_KDF_ROUNDS

    yield

    settings.password_kdf_rounds = original_rounds
