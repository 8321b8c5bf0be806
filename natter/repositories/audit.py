"""Audit log repository — durable counter plus two-phase entries."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from natter.db.tables import (
    AUDIT_METHOD_LENGTH,
    AUDIT_PATH_LENGTH,
    AuditSequenceRow,
    audit_log,
)
from natter.models.common import utc_now
from natter.repositories.base import conflict_insert

AUDIT_SEQUENCE_NAME = "audit_id"


class AuditLogRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def next_audit_id(self) -> int:
        """Advance the shared counter and return the new value.

        One statement: the row lock taken by the upsert serialises callers,
        and a missing counter row is created at 1.
        """
        table = AuditSequenceRow.__table__
        stmt = conflict_insert(self._session, table).values(
            name=AUDIT_SEQUENCE_NAME, last_value=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["name"],
            set_={"last_value": table.c.last_value + 1},
        ).returning(table.c.last_value)
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def insert_attempt(
        self,
        *,
        audit_id: int,
        method: str,
        path: str,
        user_id: str | None,
    ) -> None:
        await self._session.execute(
            audit_log.insert().values(
                audit_id=audit_id,
                method=method[:AUDIT_METHOD_LENGTH],
                path=path[:AUDIT_PATH_LENGTH],
                user_id=user_id,
                status=None,
                audit_time=utc_now(),
            )
        )

    async def set_status(self, audit_id: int, status: int) -> bool:
        """Close an open entry. Returns False if no open entry matched."""
        result = await self._session.execute(
            update(audit_log)
            .where(audit_log.c.audit_id == audit_id, audit_log.c.status.is_(None))
            .values(status=status)
        )
        return result.rowcount == 1

    async def get(self, audit_id: int) -> RowMapping | None:
        result = await self._session.execute(
            select(audit_log).where(audit_log.c.audit_id == audit_id)
        )
        return result.mappings().one_or_none()

    async def list_since(self, since: datetime | None = None) -> list[RowMapping]:
        stmt = select(audit_log)
        if since is not None:
            stmt = stmt.where(audit_log.c.audit_time >= since)
        stmt = stmt.order_by(audit_log.c.audit_id)
        result = await self._session.execute(stmt)
        return list(result.mappings().all())
