"""
Shared pytest configuration for naijaplay tests.

Runs against TEST_DATABASE_URL; defaults to a local SQLite file so the
suite works without a PostgreSQL server.

SAFETY: This module REFUSES to run against any database whose name does not
contain the substring "test". This prevents accidental wiping of a
development or production database when environment variables are
misconfigured.
"""

import os

# Rate limiting is disabled when the routes package is imported under ENV=test
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "naijaplay-test-secret-key-at-least-32-chars")

import asyncio  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from sqlalchemy import text  # noqa: E402
from naijaplay.database.db import Base, create_engine_for_url, is_sqlite_url  # noqa: E402


def _resolve_test_database_url() -> str:
    """Build the test database URL with safety checks.

    Raises ``RuntimeError`` if the resolved URL does not point to a database
    whose name contains "test".
    """
    url = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./naijaplay_test.db")

    # ── Safety gate: database name MUST contain "test" ──────────────────
    db_name = url.rsplit("/", 1)[-1].split("?")[0]  # strip query params
    if "test" not in db_name.lower():
        raise RuntimeError(
            f"\n{'=' * 70}\n"
            f"  SAFETY: Refusing to run tests against database '{db_name}'.\n"
            f"  The database name must contain 'test' to prevent accidental\n"
            f"  data loss in development or production databases.\n\n"
            f"  Resolved URL: {url}\n\n"
            f"  Fix: set TEST_DATABASE_URL to a test database, e.g.:\n"
            f"    export TEST_DATABASE_URL=postgresql+asyncpg://.../naijaplay_test\n"
            f"{'=' * 70}"
        )

    return url


# Validated at import time so pytest fails immediately with a clear message
TEST_DATABASE_URL = _resolve_test_database_url()


async def _clear_tables(engine):
    """Empty every table so each test starts from a clean state."""
    async with engine.begin() as conn:
        if is_sqlite_url(TEST_DATABASE_URL):
            for table in reversed(Base.metadata.sorted_tables):
                await conn.execute(table.delete())
        else:
            table_list = ", ".join(f'"{t.name}"' for t in Base.metadata.sorted_tables)
            await conn.execute(text(f"TRUNCATE TABLE {table_list} RESTART IDENTITY CASCADE"))


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine with all tables."""
    # NullPool avoids reusing connections across event loops
    engine = create_engine_for_url(TEST_DATABASE_URL, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await _clear_tables(engine)

    # Code that opens its own sessions (db.AsyncSessionLocal()) must hit the test engine
    from naijaplay.database import db

    test_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    original_async_session_local = db.AsyncSessionLocal
    db.AsyncSessionLocal = test_session_maker

    yield engine

    db.AsyncSessionLocal = original_async_session_local

    await asyncio.sleep(0.05)  # let connections finish
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    """Session factory for tests that need several independent sessions."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A session for one test; uncommitted work is rolled back afterwards."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest_asyncio.fixture
async def make_user(db_session):
    """
    Factory creating users directly (no bcrypt) for speed.

    Usage: user = await make_user("ada", coins=500)
    """
    from naijaplay.database.models import User

    async def _make_user(username, coins=1000, xp=0, village_id=None, **fields):
        user = User(
            username=username,
            email=f"{username.lower()}@example.com",
            password_hash="hash",
            avatar="🎮",
            title="Street Trainee",
            level=xp // 1000 + 1,
            xp=xp,
            coins=coins,
            village_id=village_id,
            achievements={},
            **fields,
        )
        db_session.add(user)
        await db_session.flush()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest_asyncio.fixture
async def make_village(db_session):
    """Factory creating villages directly."""
    from naijaplay.database.models import Village

    async def _make_village(name, region="LAGOS", total_xp=0):
        village = Village(name=name, region=region, icon="🏘️", total_xp=total_xp)
        db_session.add(village)
        await db_session.flush()
        await db_session.refresh(village)
        return village

    return _make_village
