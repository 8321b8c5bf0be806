"""Space repository — the space registry."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from natter.db.tables import SpaceRow
from natter.repositories.base import conflict_insert


class SpaceRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_if_absent(self, *, name: str, owner: str) -> int | None:
        """Insert a space and return its id, or None if the name is taken.

        The unique index on name decides concurrent creators: exactly one
        INSERT returns a row.
        """
        stmt = (
            conflict_insert(self._session, SpaceRow.__table__)
            .values(name=name, owner=owner)
            .on_conflict_do_nothing(index_elements=["name"])
            .returning(SpaceRow.space_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, space_id: int) -> SpaceRow | None:
        return await self._session.get(SpaceRow, space_id)

    async def get_by_name(self, name: str) -> SpaceRow | None:
        result = await self._session.execute(
            select(SpaceRow).where(SpaceRow.name == name)
        )
        return result.scalar_one_or_none()
