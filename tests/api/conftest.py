import pytest
from httpx import AsyncClient

USERS = ("alice", "bob", "carol")


def password_for(user_id: str) -> str:
    return f"{user_id}-password"


@pytest.fixture
async def registered(client: AsyncClient) -> dict[str, tuple[str, str]]:
    """Register alice, bob and carol; map each to its Basic auth pair."""
    auth = {}
    for user_id in USERS:
        resp = await client.post(
            "/users", json={"username": user_id, "password": password_for(user_id)},
        )
        assert resp.status_code == 201, resp.text
        auth[user_id] = (user_id, password_for(user_id))
    return auth
