import pytest

from natter.services.users import UserService


@pytest.fixture
async def users(session_factory):
    """Register alice, bob and carol; returns the UserService."""
    service = UserService(session_factory)
    for user_id in ("alice", "bob", "carol"):
        await service.register(user_id, f"{user_id}-password")
    return service
