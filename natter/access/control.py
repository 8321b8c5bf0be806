"""
Access control engine for Natter spaces.

Decides, for (space, user, capability), whether an operation may proceed:

    1. Unknown space            -> DENY, NOT_FOUND
    2. user is the space owner  -> ALLOW (implicit full rights, no grant row)
    3. no grant row             -> DENY, NO_GRANT
    4. capability bit set       -> ALLOW, else DENY, INSUFFICIENT_CAPABILITY

Invariants:
    - The owner and the grant are read by one statement, so a decision
      never mixes two states of the permission table
    - check_access has no side effects; callers record the audit trail
    - Guarded operations pass LockMode.SHARE so the space row stays share
      locked until their transaction ends; grant/revoke pass
      LockMode.UPDATE and therefore wait for them (and vice versa)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from natter.db.tables import PermissionRow, SpaceRow
from natter.errors import NotFoundError, PermissionDeniedError
from natter.models.common import (
    ALL_CAPABILITIES,
    Capability,
    DenyReason,
    LockMode,
    from_code,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpaceAccess:
    """What one user holds in one space, as read from the datastore.

    Attributes:
        owner: The space owner
        grant: Capabilities from the stored grant, or None without a row
    """

    owner: str
    grant: Capability | None

    def capabilities_of(self, user_id: str | None) -> Capability:
        if user_id is not None and user_id == self.owner:
            return ALL_CAPABILITIES
        return self.grant or Capability.NONE


@dataclass(frozen=True)
class AccessDecision:
    """Result of an access check."""

    allowed: bool
    reason: DenyReason | None = None

    def require(self) -> None:
        """Raise the error matching a denial; return quietly on ALLOW.

        Sub-reasons stay on the exception for logging; the message is the
        same for NO_GRANT and INSUFFICIENT_CAPABILITY.
        """
        if self.allowed:
            return
        if self.reason == DenyReason.NOT_FOUND:
            raise NotFoundError("space not found")
        raise PermissionDeniedError(self.reason.value if self.reason else None)


ALLOW = AccessDecision(allowed=True)


def decide(access: SpaceAccess | None, user_id: str | None,
           capability: Capability) -> AccessDecision:
    """Pure decision function over an already-read SpaceAccess."""
    if access is None:
        return AccessDecision(allowed=False, reason=DenyReason.NOT_FOUND)
    if user_id is not None and user_id == access.owner:
        return ALLOW
    if access.grant is None:
        return AccessDecision(allowed=False, reason=DenyReason.NO_GRANT)
    if capability in access.grant:
        return ALLOW
    return AccessDecision(allowed=False, reason=DenyReason.INSUFFICIENT_CAPABILITY)


class AccessControl:
    """Reads space ownership and grants, and decides access.

    Thread safety:
        Bound to one AsyncSession; create one per unit of work.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def lookup(
        self,
        space_id: int,
        user_id: str | None,
        *,
        lock: LockMode = LockMode.NONE,
    ) -> SpaceAccess | None:
        """Read owner and grant for (space, user) in a single statement."""
        stmt = (
            select(SpaceRow.owner, PermissionRow.perms)
            .select_from(SpaceRow)
            .outerjoin(
                PermissionRow,
                and_(
                    PermissionRow.space_id == SpaceRow.space_id,
                    PermissionRow.user_id == user_id,
                ),
            )
            .where(SpaceRow.space_id == space_id)
        )
        if lock == LockMode.SHARE:
            stmt = stmt.with_for_update(read=True, of=SpaceRow)
        elif lock == LockMode.UPDATE:
            stmt = stmt.with_for_update(of=SpaceRow)

        row = (await self._session.execute(stmt)).one_or_none()
        if row is None:
            return None
        grant = from_code(row.perms) if row.perms is not None else None
        return SpaceAccess(owner=row.owner, grant=grant)

    async def check_access(
        self,
        space_id: int,
        user_id: str | None,
        capability: Capability,
        *,
        lock: LockMode = LockMode.NONE,
    ) -> AccessDecision:
        access = await self.lookup(space_id, user_id, lock=lock)
        decision = decide(access, user_id, capability)
        if not decision.allowed:
            logger.info(
                "ACCESS_DENY space=%s user=%s capability=%s reason=%s",
                space_id,
                user_id or "-",
                capability.name,
                decision.reason,
            )
        return decision

    async def require(
        self,
        space_id: int,
        user_id: str | None,
        capability: Capability,
        *,
        lock: LockMode = LockMode.SHARE,
    ) -> None:
        """check_access for guarded operations: locks the space and raises."""
        decision = await self.check_access(space_id, user_id, capability, lock=lock)
        decision.require()
