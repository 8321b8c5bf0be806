"""Space registry operations."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from natter.access.control import AccessControl
from natter.db.session import unit_of_work
from natter.db.tables import SPACE_NAME_LENGTH, SpaceRow
from natter.errors import ConflictError, NotFoundError, ValidationError
from natter.models.common import Capability
from natter.repositories.spaces import SpaceRepository
from natter.repositories.users import UserRepository

logger = logging.getLogger(__name__)


class SpaceService:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def create_space(self, name: str, owner: str) -> int:
        """Create a space and return its id.

        Raises ConflictError if the name exists (exact, case-sensitive match).
        """
        if not name or not name.strip():
            raise ValidationError("space name must not be empty")
        if len(name) > SPACE_NAME_LENGTH:
            raise ValidationError(f"space name must be at most {SPACE_NAME_LENGTH} characters")

        async with unit_of_work(self._sessions) as session:
            if not await UserRepository(session).exists(owner):
                raise NotFoundError("owner is not a registered user")
            space_id = await SpaceRepository(session).create_if_absent(name=name, owner=owner)

        if space_id is None:
            raise ConflictError(f"space {name!r} already exists")
        logger.info("SPACE_CREATED space=%s name=%s owner=%s", space_id, name, owner)
        return space_id

    async def get_space(self, space_id: int, user_id: str) -> SpaceRow:
        async with unit_of_work(self._sessions) as session:
            await AccessControl(session).require(space_id, user_id, Capability.READ)
            space = await SpaceRepository(session).get(space_id)
        if space is None:
            raise NotFoundError("space not found")
        return space
