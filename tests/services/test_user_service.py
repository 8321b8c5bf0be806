"""Tests for UserService: registration, authentication, rotation."""

import threading

import pytest

from natter.db.session import create_engine_from_url, make_session_factory
from natter.errors import AuthenticationError, ConflictError, TransientStoreError, ValidationError
from natter.security.passwords import verify_password
from natter.services.users import UserService


class TestRegister:
    @pytest.mark.anyio
    async def test_register(self, session_factory) -> None:
        assert await UserService(session_factory).register("alice", "alice-password") == "alice"

    @pytest.mark.anyio
    async def test_duplicate_conflicts(self, users: UserService) -> None:
        with pytest.raises(ConflictError):
            await users.register("alice", "another-password")

    @pytest.mark.anyio
    @pytest.mark.parametrize("user_id", ["a", "1alice", "alice!", "x" * 31, ""])
    async def test_invalid_user_name(self, session_factory, user_id: str) -> None:
        with pytest.raises(ValidationError):
            await UserService(session_factory).register(user_id, "long-enough")

    @pytest.mark.anyio
    async def test_short_password(self, session_factory) -> None:
        with pytest.raises(ValidationError):
            await UserService(session_factory).register("alice", "short")


class TestAuthenticate:
    @pytest.mark.anyio
    async def test_valid(self, users: UserService) -> None:
        assert await users.authenticate("alice", "alice-password") == "alice"

    @pytest.mark.anyio
    async def test_wrong_password(self, users: UserService) -> None:
        with pytest.raises(AuthenticationError):
            await users.authenticate("alice", "bob-password")

    @pytest.mark.anyio
    async def test_unknown_user(self, users: UserService) -> None:
        with pytest.raises(AuthenticationError):
            await users.authenticate("mallory", "whatever1")


class TestRotatePassword:
    @pytest.mark.anyio
    async def test_rotate(self, users: UserService) -> None:
        await users.rotate_password("alice", "alice-password", "fresh-password")
        assert await users.authenticate("alice", "fresh-password") == "alice"
        with pytest.raises(AuthenticationError):
            await users.authenticate("alice", "alice-password")

    @pytest.mark.anyio
    async def test_rotate_requires_current(self, users: UserService) -> None:
        with pytest.raises(AuthenticationError):
            await users.rotate_password("alice", "not-it-at-all", "fresh-password")


class TestHashingOffTheEventLoop:
    @pytest.mark.anyio
    async def test_scrypt_runs_in_worker_thread(self, users: UserService, monkeypatch) -> None:
        loop_thread = threading.get_ident()
        seen: list[int] = []

        def recording_verify(password: str, stored: str) -> bool:
            seen.append(threading.get_ident())
            return verify_password(password, stored)

        monkeypatch.setattr("natter.services.users.verify_password", recording_verify)
        assert await users.authenticate("alice", "alice-password") == "alice"
        assert seen and seen[0] != loop_thread


class TestStoreUnavailable:
    @pytest.mark.anyio
    async def test_unreachable_store_is_transient(self, tmp_path) -> None:
        eng = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'natter.db'}")
        try:
            with pytest.raises(TransientStoreError):
                await UserService(make_session_factory(eng)).authenticate("alice", "alice-password")
        finally:
            await eng.dispose()
