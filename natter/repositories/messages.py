"""Message log repository."""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from natter.db.tables import MessageRow
from natter.models.common import utc_now


class MessageRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, space_id: int, author: str, msg_text: str) -> MessageRow:
        row = MessageRow(
            space_id=space_id,
            author=author,
            msg_text=msg_text,
            msg_time=utc_now(),
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, space_id: int, msg_id: int) -> MessageRow | None:
        result = await self._session.execute(
            select(MessageRow).where(
                MessageRow.space_id == space_id,
                MessageRow.msg_id == msg_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_space(
        self,
        space_id: int,
        *,
        since: datetime,
        until: datetime | None = None,
    ) -> list[MessageRow]:
        """Messages with since <= msg_time (< until), oldest first."""
        stmt = select(MessageRow).where(
            MessageRow.space_id == space_id,
            MessageRow.msg_time >= since,
        )
        if until is not None:
            stmt = stmt.where(MessageRow.msg_time < until)
        stmt = stmt.order_by(MessageRow.msg_time, MessageRow.msg_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def delete(self, space_id: int, msg_id: int) -> bool:
        result = await self._session.execute(
            delete(MessageRow).where(
                MessageRow.space_id == space_id,
                MessageRow.msg_id == msg_id,
            )
        )
        return result.rowcount == 1
