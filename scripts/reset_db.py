"""Teardown script — drop every Natter table and recreate an empty schema.

For development databases only; production schemas are managed with
`alembic upgrade head` / `alembic downgrade base`.

Usage:
    python -m scripts.reset_db
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

from natter.db.session import Base
import natter.db.tables  # noqa: F401 — register ORM models on Base.metadata
from natter.db.tables import AuditSequenceRow
from natter.repositories.audit import AUDIT_SEQUENCE_NAME


async def drop_all(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def recreate_all(engine: AsyncEngine) -> None:
    """Drop, create, and seed the audit counter the way migration 002 does."""
    await drop_all(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(
            AuditSequenceRow.__table__.insert().values(name=AUDIT_SEQUENCE_NAME, last_value=0)
        )


async def _run_reset() -> None:
    from natter.db.session import engine

    await recreate_all(engine)
    await engine.dispose()
    print("Database schema dropped and recreated.")


if __name__ == "__main__":
    asyncio.run(_run_reset())
