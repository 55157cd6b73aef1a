from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)

from mobile_post_office.config.settings import get_settings


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    pysqlite (and aiosqlite on top of it) manages BEGIN itself and breaks SAVEPOINT.
    Hand transaction control back to SQLAlchemy, as described in the SQLAlchemy
    SQLite dialect docs ("Serializable isolation / Savepoints / Transactional DDL").
    The import pipeline needs working SAVEPOINTs for per-record isolation.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an AsyncEngine for `url`, applying dialect fixes where needed."""
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    engine = create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=not is_sqlite,     # connection health checks for server databases
    )
    if is_sqlite:
        _enable_sqlite_savepoints(engine)
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# The engine is created lazily so importing this module never needs a DB driver.
@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return build_engine(settings.DATABASE_URL, echo=settings.SQLALCHEMY_ECHO)


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(get_engine())


# Dependency to get DB session
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency. Yields a session and ensures it's closed after the request.

    Usage:
        async def endpoint(db: AsyncSession = Depends(get_async_session)):
            await db.execute(...)
    """
    async with get_sessionmaker()() as session:
        yield session


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create any missing tables for the registered models (no migrations, no drops)."""
    from mobile_post_office.database.base import Base
    import mobile_post_office.models  # noqa: F401 - registers the models on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
