"""User registration, authentication and credential rotation."""

import asyncio
import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from natter.db.session import unit_of_work
from natter.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from natter.repositories.users import UserRepository
from natter.security.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

USER_ID_PATTERN = re.compile(r"[a-zA-Z][a-zA-Z0-9]{1,29}")
MIN_PASSWORD_LENGTH = 8


def validate_user_id(user_id: str) -> None:
    if not USER_ID_PATTERN.fullmatch(user_id):
        raise ValidationError("invalid user name")


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters"
        )


class UserService:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def register(self, user_id: str, password: str) -> str:
        validate_user_id(user_id)
        validate_password(password)
        pw_hash = await asyncio.to_thread(hash_password, password)
        async with unit_of_work(self._sessions) as session:
            created = await UserRepository(session).create_if_absent(
                user_id=user_id, pw_hash=pw_hash,
            )
        if not created:
            raise ConflictError("user name already taken")
        logger.info("USER_REGISTERED user=%s", user_id)
        return user_id

    async def authenticate(self, user_id: str, password: str) -> str:
        """Return user_id if the credentials match, else AuthenticationError.

        Unknown users and wrong passwords are indistinguishable to callers.
        """
        async with unit_of_work(self._sessions) as session:
            row = await UserRepository(session).get(user_id)
        if row is None or not await asyncio.to_thread(verify_password, password, row.pw_hash):
            raise AuthenticationError("invalid credentials")
        return row.user_id

    async def rotate_password(self, user_id: str, current: str, new: str) -> None:
        validate_password(new)
        await self.authenticate(user_id, current)
        pw_hash = await asyncio.to_thread(hash_password, new)
        async with unit_of_work(self._sessions) as session:
            updated = await UserRepository(session).update_hash(user_id, pw_hash)
        if not updated:
            raise NotFoundError("user not found")
        logger.info("USER_PASSWORD_ROTATED user=%s", user_id)
