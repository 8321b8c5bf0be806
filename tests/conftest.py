"""Shared pytest fixtures for the Natter test suite.

Provides:
- db_engine: SQLite file database in tmp_path with all tables
- session_factory: sessions bound to db_engine (what services receive)
- db_session: one open session for repository-level tests
- client: AsyncClient over an app wired to session_factory
"""

import os

# Cheap scrypt parameters and a driver-free default URL for the suite.
os.environ.setdefault("SCRYPT_N", "1024")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "staging")
os.environ.setdefault("RATE_LIMIT", "10000/second")

import pytest
from httpx import ASGITransport, AsyncClient

from natter.db.session import Base, create_engine_from_url, make_session_factory
import natter.db.tables  # noqa: F401 — register ORM models on Base.metadata


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def db_engine(tmp_path):
    """Create a file-backed SQLite async engine with all tables.

    A file rather than :memory: so that the audit log's own transactions
    and the request's transaction use separate connections, as in
    production.
    """
    eng = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'natter.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
async def db_session(session_factory):
    """A single session; its transaction is rolled back at teardown."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(session_factory):
    """AsyncClient against an app bound to the test database."""
    from natter.api.main import create_app

    app = create_app(session_factory)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


