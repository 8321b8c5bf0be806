"""Permission repository — capability grants per (space, user)."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from natter.db.tables import PermissionRow
from natter.repositories.base import conflict_insert


class PermissionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, *, space_id: int, user_id: str, perms: str) -> None:
        """Replace the grant for (space, user) as a whole row, or create it."""
        stmt = conflict_insert(self._session, PermissionRow.__table__).values(
            space_id=space_id, user_id=user_id, perms=perms,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["space_id", "user_id"],
            set_={"perms": stmt.excluded.perms},
        )
        await self._session.execute(stmt)

    # upsert() bypasses the identity map, so reads always refresh loaded rows.

    async def get(self, space_id: int, user_id: str) -> PermissionRow | None:
        result = await self._session.execute(
            select(PermissionRow)
            .where(
                PermissionRow.space_id == space_id,
                PermissionRow.user_id == user_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_by_space(self, space_id: int) -> list[PermissionRow]:
        result = await self._session.execute(
            select(PermissionRow)
            .where(PermissionRow.space_id == space_id)
            .order_by(PermissionRow.user_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def delete(self, space_id: int, user_id: str) -> bool:
        result = await self._session.execute(
            delete(PermissionRow).where(
                PermissionRow.space_id == space_id,
                PermissionRow.user_id == user_id,
            )
        )
        return result.rowcount == 1
