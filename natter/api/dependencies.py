"""FastAPI dependency injection factories for services.

The session factory lives on app.state so the audit and authentication
middleware (which cannot use Depends) share it with the endpoints. Each
service factory returns a service bound to that factory.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from natter.audit.log import AuditLog
from natter.errors import AuthenticationError
from natter.services.messages import MessageService
from natter.services.permissions import PermissionService
from natter.services.spaces import SpaceService
from natter.services.users import UserService


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_factory


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


def get_current_user(request: Request) -> str:
    """The authenticated user id, or 401 if the request carries none."""
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise AuthenticationError("authentication required")
    return user_id


async def get_user_service(
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> UserService:
    return UserService(sessions)


# ---------------------------------------------------------------------------
# Spaces / permissions / messages
# ---------------------------------------------------------------------------


async def get_space_service(
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> SpaceService:
    return SpaceService(sessions)


async def get_permission_service(
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> PermissionService:
    return PermissionService(sessions)


async def get_message_service(
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> MessageService:
    return MessageService(sessions)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


def get_audit_log(request: Request) -> AuditLog:
    return AuditLog(get_session_factory(request))
