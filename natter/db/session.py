"""SQLAlchemy async session setup for Natter.

Provides:
- Base: DeclarativeBase for all ORM models
- create_engine_from_url: async engine, with SQLite locking configured
- engine / async_session_factory: process-wide defaults built from settings
- unit_of_work: one transaction per logical request, store failures mapped
  to TransientStoreError
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from natter.config.settings import get_settings
from natter.errors import TransientStoreError


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def configure_sqlite(engine: AsyncEngine) -> None:
    """Make SQLite behave like a transactional store for concurrent writers.

    pysqlite defers BEGIN until the first DML statement and upgrades locks
    lazily, which deadlocks two writers that both read first. Every
    transaction starts with BEGIN IMMEDIATE instead, so writers queue on the
    busy timeout. Foreign keys are off by default in SQLite.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_from_url(url: str, *, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite"):
        eng = create_async_engine(url, echo=echo)
        configure_sqlite(eng)
        return eng
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def make_session_factory(eng: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=eng, class_=AsyncSession, expire_on_commit=False)


_settings = get_settings()

engine = create_engine_from_url(
    _settings.DATABASE_URL,
    echo=(_settings.ENVIRONMENT == "dev"),
)

async_session_factory = make_session_factory(engine)


@asynccontextmanager
async def unit_of_work(
    sessions: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Yield a session inside a single transaction.

    Repositories only call add()/flush()/execute().
    Commit happens once when the block exits cleanly.
    Rollback happens on any exception.
    """
    try:
        async with sessions.begin() as session:
            yield session
    except (OperationalError, InterfaceError) as exc:
        raise TransientStoreError("datastore unavailable, retry the request") from exc
