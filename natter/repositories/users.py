"""User repository."""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from natter.db.tables import UserRow
from natter.repositories.base import conflict_insert


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_if_absent(self, *, user_id: str, pw_hash: str) -> bool:
        """Insert the user. Returns False when the user id is already taken."""
        stmt = (
            conflict_insert(self._session, UserRow.__table__)
            .values(user_id=user_id, pw_hash=pw_hash)
            .on_conflict_do_nothing(index_elements=["user_id"])
            .returning(UserRow.user_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get(self, user_id: str) -> UserRow | None:
        return await self._session.get(UserRow, user_id)

    async def exists(self, user_id: str) -> bool:
        result = await self._session.execute(
            select(UserRow.user_id).where(UserRow.user_id == user_id)
        )
        return result.scalar_one_or_none() is not None

    async def update_hash(self, user_id: str, pw_hash: str) -> bool:
        result = await self._session.execute(
            update(UserRow).where(UserRow.user_id == user_id).values(pw_hash=pw_hash)
        )
        return result.rowcount == 1
