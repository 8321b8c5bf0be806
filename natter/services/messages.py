"""Message log operations, each gated by the access control engine.

Check and effect share one transaction with the space row share-locked, so
a revocation committed by someone else cannot land between them.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from natter.access.control import AccessControl
from natter.config.settings import get_settings
from natter.db.session import unit_of_work
from natter.db.tables import MessageRow
from natter.errors import NotFoundError, ValidationError
from natter.models.common import Capability, utc_now
from natter.repositories.messages import MessageRepository

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        *,
        max_length: int | None = None,
        list_window: timedelta | None = None,
    ) -> None:
        settings = get_settings()
        self._sessions = sessions
        self._max_length = max_length or settings.MAX_MESSAGE_LENGTH
        self._list_window = list_window or timedelta(hours=settings.MESSAGE_LIST_WINDOW_HOURS)

    def _validate_text(self, text: str) -> None:
        if not text or not text.strip():
            raise ValidationError("message must not be empty")
        if len(text) > self._max_length:
            raise ValidationError(f"message must be at most {self._max_length} characters")

    async def post_message(self, space_id: int, author: str, text: str) -> MessageRow:
        self._validate_text(text)
        async with unit_of_work(self._sessions) as session:
            await AccessControl(session).require(space_id, author, Capability.WRITE)
            row = await MessageRepository(session).create(
                space_id=space_id, author=author, msg_text=text,
            )
        logger.debug("MESSAGE_POSTED space=%s msg=%s author=%s", space_id, row.msg_id, author)
        return row

    async def list_messages(
        self,
        space_id: int,
        caller: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[MessageRow]:
        if since is None:
            since = utc_now() - self._list_window
        if until is not None and until <= since:
            raise ValidationError("'until' must be later than 'since'")
        async with unit_of_work(self._sessions) as session:
            await AccessControl(session).require(space_id, caller, Capability.READ)
            return await MessageRepository(session).list_by_space(
                space_id, since=since, until=until,
            )

    async def read_message(self, space_id: int, msg_id: int, caller: str) -> MessageRow:
        async with unit_of_work(self._sessions) as session:
            await AccessControl(session).require(space_id, caller, Capability.READ)
            row = await MessageRepository(session).get(space_id, msg_id)
        if row is None:
            raise NotFoundError("message not found")
        return row

    async def delete_message(self, space_id: int, msg_id: int, moderator: str) -> None:
        """Moderation: remove one message. Requires DELETE on the space."""
        async with unit_of_work(self._sessions) as session:
            await AccessControl(session).require(space_id, moderator, Capability.DELETE)
            removed = await MessageRepository(session).delete(space_id, msg_id)
        if not removed:
            raise NotFoundError("message not found")
        logger.info("MESSAGE_DELETED space=%s msg=%s moderator=%s", space_id, msg_id, moderator)
