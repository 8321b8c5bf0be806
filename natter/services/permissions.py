"""Permission table lifecycle: grant, revoke, list.

Grant rules:
- the owner may grant any capability set
- anyone else may grant only capabilities they hold themselves, and may
  only replace a grant that holds nothing beyond their own capabilities
- a grant replaces the grantee's previous capability set entirely

Only the owner may revoke or list grants. Both grant and revoke lock the
space row exclusively (LockMode.UPDATE), so they serialise against guarded
operations that are between their access check and their effect.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from natter.access.control import AccessControl
from natter.db.session import unit_of_work
from natter.errors import NotFoundError, PermissionDeniedError, ValidationError
from natter.models.common import Capability, DenyReason, LockMode, from_code, to_code
from natter.repositories.permissions import PermissionRepository
from natter.repositories.users import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Grant:
    space_id: int
    user_id: str
    capabilities: Capability

    @property
    def code(self) -> str:
        return to_code(self.capabilities)


class PermissionService:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def grant(
        self,
        space_id: int,
        grantor: str,
        grantee: str,
        capabilities: Capability,
    ) -> Grant:
        if capabilities == Capability.NONE:
            raise ValidationError("a grant must include at least one capability")

        async with unit_of_work(self._sessions) as session:
            access = await AccessControl(session).lookup(space_id, grantor, lock=LockMode.UPDATE)
            if access is None:
                raise NotFoundError("space not found")
            if grantor != access.owner and access.grant is None:
                raise PermissionDeniedError(DenyReason.NO_GRANT.value)
            held = access.capabilities_of(grantor)
            permissions = PermissionRepository(session)
            current = await permissions.get(space_id, grantee)
            replaced = from_code(current.perms) if current is not None else Capability.NONE
            # the grantor can neither hand out nor take away what they do not hold
            if capabilities & ~held or replaced & ~held:
                raise PermissionDeniedError(DenyReason.INSUFFICIENT_CAPABILITY.value)
            if grantee == access.owner:
                raise ValidationError("the space owner already holds every capability")
            if not await UserRepository(session).exists(grantee):
                raise NotFoundError("user not found")

            await permissions.upsert(
                space_id=space_id, user_id=grantee, perms=to_code(capabilities),
            )

        logger.info(
            "PERMISSION_GRANTED space=%s grantor=%s grantee=%s perms=%s",
            space_id, grantor, grantee, to_code(capabilities),
        )
        return Grant(space_id=space_id, user_id=grantee, capabilities=capabilities)

    async def revoke(self, space_id: int, revoker: str, user_id: str) -> None:
        async with unit_of_work(self._sessions) as session:
            await self._require_owner(session, space_id, revoker)
            removed = await PermissionRepository(session).delete(space_id, user_id)
        if not removed:
            raise NotFoundError("no grant for that user")
        logger.info(
            "PERMISSION_REVOKED space=%s revoker=%s user=%s", space_id, revoker, user_id,
        )

    async def list_grants(self, space_id: int, caller: str) -> list[Grant]:
        async with unit_of_work(self._sessions) as session:
            await self._require_owner(session, space_id, caller, lock=LockMode.SHARE)
            rows = await PermissionRepository(session).list_by_space(space_id)
        return [
            Grant(space_id=row.space_id, user_id=row.user_id, capabilities=from_code(row.perms))
            for row in rows
        ]

    async def _require_owner(
        self,
        session: AsyncSession,
        space_id: int,
        user_id: str,
        *,
        lock: LockMode = LockMode.UPDATE,
    ) -> None:
        access = await AccessControl(session).lookup(space_id, user_id, lock=lock)
        if access is None:
            raise NotFoundError("space not found")
        if user_id != access.owner:
            raise PermissionDeniedError(
                DenyReason.NO_GRANT.value if access.grant is None
                else DenyReason.INSUFFICIENT_CAPABILITY.value
            )
