"""Tests for SQLAlchemy table models — natter/db/tables.py.

Tests verify:
- All six tables are created
- Unique space names and the composite permission key
- Foreign keys are enforced on SQLite
- audit_log accepts entries for unknown users and a NULL status
- Message ids are not reused after the newest message is deleted
"""

import pytest
from sqlalchemy import delete, inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from natter.db.tables import (
    MessageRow,
    PermissionRow,
    SpaceRow,
    UserRow,
    audit_log,
)
from natter.models.common import utc_now


async def _add_user_and_space(session: AsyncSession) -> SpaceRow:
    session.add(UserRow(user_id="alice", pw_hash="x"))
    space = SpaceRow(name="general", owner="alice")
    session.add(space)
    await session.flush()
    return space


# ---------------------------------------------------------------------------
# Table existence
# ---------------------------------------------------------------------------


class TestTableCreation:
    EXPECTED_TABLES = {"users", "spaces", "messages", "permissions", "audit_log", "audit_sequence"}

    @pytest.mark.anyio
    async def test_all_tables_exist(self, db_engine) -> None:
        async with db_engine.connect() as conn:
            table_names = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
        assert self.EXPECTED_TABLES.issubset(set(table_names)), (
            f"Missing tables: {self.EXPECTED_TABLES - set(table_names)}"
        )

    @pytest.mark.anyio
    async def test_named_indexes_exist(self, db_engine) -> None:
        async with db_engine.connect() as conn:
            space_idx = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_indexes("spaces")
            )
            msg_idx = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_indexes("messages")
            )
        assert "space_name_idx" in {i["name"] for i in space_idx}
        assert "msg_timestamp_idx" in {i["name"] for i in msg_idx}


# ---------------------------------------------------------------------------
# SpaceRow
# ---------------------------------------------------------------------------


class TestSpaceRow:
    @pytest.mark.anyio
    async def test_space_id_assigned(self, db_session: AsyncSession) -> None:
        space = await _add_user_and_space(db_session)
        assert isinstance(space.space_id, int)

    @pytest.mark.anyio
    async def test_duplicate_name_rejected(self, db_session: AsyncSession) -> None:
        await _add_user_and_space(db_session)
        db_session.add(SpaceRow(name="general", owner="alice"))
        with pytest.raises(IntegrityError):
            await db_session.flush()

    @pytest.mark.anyio
    async def test_names_are_case_sensitive(self, db_session: AsyncSession) -> None:
        await _add_user_and_space(db_session)
        db_session.add(SpaceRow(name="General", owner="alice"))
        await db_session.flush()


# ---------------------------------------------------------------------------
# MessageRow
# ---------------------------------------------------------------------------


class TestMessageRow:
    @pytest.mark.anyio
    async def test_unknown_space_rejected(self, db_session: AsyncSession) -> None:
        db_session.add(MessageRow(space_id=999, author="alice", msg_text="hi", msg_time=utc_now()))
        with pytest.raises(IntegrityError):
            await db_session.flush()

    @pytest.mark.anyio
    async def test_ids_not_reused_after_delete(self, db_session: AsyncSession) -> None:
        space = await _add_user_and_space(db_session)
        first = MessageRow(space_id=space.space_id, author="alice", msg_text="one", msg_time=utc_now())
        db_session.add(first)
        await db_session.flush()
        first_id = first.msg_id

        await db_session.execute(delete(MessageRow).where(MessageRow.msg_id == first_id))
        second = MessageRow(space_id=space.space_id, author="alice", msg_text="two", msg_time=utc_now())
        db_session.add(second)
        await db_session.flush()
        assert second.msg_id > first_id


# ---------------------------------------------------------------------------
# PermissionRow
# ---------------------------------------------------------------------------


class TestPermissionRow:
    @pytest.mark.anyio
    async def test_one_row_per_space_and_user(self, db_session: AsyncSession) -> None:
        space = await _add_user_and_space(db_session)
        db_session.add(UserRow(user_id="bob", pw_hash="x"))
        db_session.add(PermissionRow(space_id=space.space_id, user_id="bob", perms="r--"))
        await db_session.flush()
        db_session.expunge_all()

        db_session.add(PermissionRow(space_id=space.space_id, user_id="bob", perms="rw-"))
        with pytest.raises(IntegrityError):
            await db_session.flush()

    @pytest.mark.anyio
    async def test_unknown_user_rejected(self, db_session: AsyncSession) -> None:
        space = await _add_user_and_space(db_session)
        db_session.add(PermissionRow(space_id=space.space_id, user_id="ghost", perms="r--"))
        with pytest.raises(IntegrityError):
            await db_session.flush()


# ---------------------------------------------------------------------------
# audit_log
# ---------------------------------------------------------------------------


class TestAuditLog:
    @pytest.mark.anyio
    async def test_entry_for_unknown_user_and_open_status(self, db_session: AsyncSession) -> None:
        await db_session.execute(
            audit_log.insert().values(
                audit_id=1, method="GET", path="/spaces/1", user_id="ghost",
                status=None, audit_time=utc_now(),
            )
        )
        row = (await db_session.execute(select(audit_log))).mappings().one()
        assert row["user_id"] == "ghost"
        assert row["status"] is None

    @pytest.mark.anyio
    async def test_anonymous_entry(self, db_session: AsyncSession) -> None:
        await db_session.execute(
            audit_log.insert().values(
                audit_id=1, method="POST", path="/users", user_id=None, audit_time=utc_now(),
            )
        )
        row = (await db_session.execute(select(audit_log))).mappings().one()
        assert row["user_id"] is None
