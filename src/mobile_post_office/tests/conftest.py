"""
Core pytest configuration for the entire test suite.

This module provides the database setup and logging installation needed by
ALL types of tests (repositories, services, importer, API, CLI).

Domain-specific fixtures are located in:
- tests/test_fixtures/post_fixtures.py   (sample records, repositories, services)
- tests/test_fixtures/api_fixtures.py    (ASGI app + httpx client)

and are imported at the bottom of this file so every test module can use them.
"""

from __future__ import annotations

# -------------------------------
# Standard library imports
# -------------------------------
import os
import sys
import asyncio
import logging
from pathlib import Path
from urllib.parse import urlparse
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Keep this block above the project imports: Faker and SQLAlchemy create their
# loggers on import and are very chatty at INFO/DEBUG during collection.
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
    "httpcore",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from mobile_post_office.config.settings import get_settings
from mobile_post_office.core.logging.builder import setup_logging, stop_queue_logging
from mobile_post_office.database.base import Base
from mobile_post_office.db.session import build_engine, build_sessionmaker, create_all_tables

settings = get_settings()
logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Install the application's dictConfig logging once for the whole session.

    pytest adds its capture handler to the root logger around every test phase,
    so `caplog` keeps working on top of this configuration.
    """
    setup_logging(settings)
    yield
    stop_queue_logging()


@pytest.fixture
def restore_logging():
    """
    Re-install the session logging configuration after a test that replaced it.

    Request it BEFORE capsys so its teardown runs after capsys has put the real
    streams back; otherwise the console handler would keep the capture buffer.
    """
    yield
    setup_logging(settings)


# ------------------------------------------------------------------------------------------------
# Test database URL
# ------------------------------------------------------------------------------------------------


def safe_log_db_url(db_url: str) -> str:
    """Strip credentials from a database URL before it is logged."""
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url(tmp_path: Path) -> str:
    """
    Determine the database URL for one test.

    1. `TEST_DATABASE_URL` environment variable (CI against PostgreSQL)
    2. the app's DATABASE_URL when `TESTING=true` and `TEST_POSTGRES_DB` is set
    3. a throwaway SQLite file under the test's tmp_path (default, no server needed)
    """
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url

    if settings.TESTING and settings.TEST_POSTGRES_DB:
        return settings.DATABASE_URL

    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


# ------------------------------------------------------------------------------------------------
# ENVIRONMENT / PLATFORM FIXES
# ------------------------------------------------------------------------------------------------

# psycopg async needs the SelectorEventLoop on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture()
async def async_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    A fresh engine and schema per test.

    The import pipeline and the CLI open their own sessions and commit for real,
    so isolation comes from a new store per test rather than an outer rollback.
    """
    url = get_test_database_url(tmp_path)
    logger.debug("tests.db.url", extra={"url": safe_log_db_url(url)})

    engine = build_engine(url)
    await create_all_tables(engine)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(async_engine)


@pytest.fixture()
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


# Domain fixtures, registered globally
from .test_fixtures.post_fixtures import (  # noqa: E402
    post_repository,
    post_service,
    sample_post_data,
    create_post,
    created_post,
    seeded_posts,
    feed_records,
)
from .test_fixtures.api_fixtures import (  # noqa: E402
    app,
    client,
)
