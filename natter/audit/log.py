"""
Two-phase audit log.

record_attempt() writes an entry with no status before the guarded
operation runs; record_outcome() fills the status in afterwards. Each phase
commits in its own transaction, independent of the request's unit of work,
so a request that rolls back or crashes still leaves an entry behind (status
NULL meaning "attempted, outcome unknown").

Invariants:
    - audit_id values come from a durable counter and are never reused
    - record_outcome only writes entries whose status is still NULL
    - any failure to write is raised as AuditWriteError; callers must fail
      the request
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from natter.db.session import unit_of_work
from natter.errors import AuditWriteError, TransientStoreError
from natter.repositories.audit import AuditLogRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditHandle:
    """Token returned by record_attempt, consumed by record_outcome."""

    audit_id: int


class AuditLog:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def record_attempt(
        self, method: str, path: str, user_id: str | None
    ) -> AuditHandle:
        try:
            async with unit_of_work(self._sessions) as session:
                repo = AuditLogRepository(session)
                audit_id = await repo.next_audit_id()
                await repo.insert_attempt(
                    audit_id=audit_id, method=method, path=path, user_id=user_id,
                )
        except (SQLAlchemyError, TransientStoreError) as exc:
            logger.error("AUDIT_WRITE_FAILED phase=attempt method=%s path=%s", method, path)
            raise AuditWriteError("audit trail unavailable") from exc
        return AuditHandle(audit_id=audit_id)

    async def record_outcome(self, handle: AuditHandle, status: int) -> None:
        try:
            async with unit_of_work(self._sessions) as session:
                closed = await AuditLogRepository(session).set_status(handle.audit_id, status)
        except (SQLAlchemyError, TransientStoreError) as exc:
            logger.error(
                "AUDIT_WRITE_FAILED phase=outcome audit_id=%s status=%s",
                handle.audit_id,
                status,
            )
            raise AuditWriteError("audit trail unavailable") from exc
        if not closed:
            logger.warning(
                "AUDIT_OUTCOME_IGNORED audit_id=%s status=%s (already closed or unknown)",
                handle.audit_id,
                status,
            )

    async def get(self, handle: AuditHandle) -> RowMapping | None:
        async with unit_of_work(self._sessions) as session:
            return await AuditLogRepository(session).get(handle.audit_id)

    async def list_entries(self, since: datetime | None = None) -> list[RowMapping]:
        async with unit_of_work(self._sessions) as session:
            return await AuditLogRepository(session).list_since(since)
