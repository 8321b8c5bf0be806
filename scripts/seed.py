"""Seed script — load demo data into the Natter database.

Creates:
1. Two demo users (alice, bob)
2. A demo space "general" owned by alice
3. A READ grant for bob on "general"

Idempotent: safe to run multiple times — skips if the demo space already exists.

Usage:
    python -m scripts.seed          # against DATABASE_URL from .env
    pytest tests/scripts/test_seed.py  # against a throwaway SQLite file
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from natter.models.common import Capability, to_code
from natter.repositories.permissions import PermissionRepository
from natter.repositories.spaces import SpaceRepository
from natter.repositories.users import UserRepository
from natter.security.passwords import hash_password

DEMO_USERS: dict[str, str] = {
    "alice": "alice-demo-password",
    "bob": "bob-demo-password",
}
DEMO_SPACE_NAME = "general"
DEMO_SPACE_OWNER = "alice"
DEMO_GRANTS: dict[str, Capability] = {
    "bob": Capability.READ,
}


async def seed_users(session: AsyncSession) -> list[str]:
    """Register the demo users that do not exist yet. Returns those created."""
    repo = UserRepository(session)
    created = []
    for user_id, password in DEMO_USERS.items():
        pw_hash = await asyncio.to_thread(hash_password, password)
        if await repo.create_if_absent(user_id=user_id, pw_hash=pw_hash):
            created.append(user_id)
    return created


async def seed_space(session: AsyncSession) -> int | None:
    """Create the demo space and its grants. Returns None if it already exists."""
    space_id = await SpaceRepository(session).create_if_absent(
        name=DEMO_SPACE_NAME, owner=DEMO_SPACE_OWNER,
    )
    if space_id is None:
        return None
    permissions = PermissionRepository(session)
    for user_id, capabilities in DEMO_GRANTS.items():
        await permissions.upsert(space_id=space_id, user_id=user_id, perms=to_code(capabilities))
    return space_id


async def seed_demo(session: AsyncSession) -> dict:
    """Seed users, space and grants in the caller's transaction.

    If the demo space already exists, returns created=False and skips.
    """
    users = await seed_users(session)
    space_id = await seed_space(session)
    if space_id is None:
        existing = await SpaceRepository(session).get_by_name(DEMO_SPACE_NAME)
        return {"created": False, "users": users, "space_id": existing.space_id}
    return {"created": True, "users": users, "space_id": space_id}


async def _run_seed() -> None:
    """Run the seed against the configured database (idempotent)."""
    from natter.db.session import async_session_factory, unit_of_work

    async with unit_of_work(async_session_factory) as session:
        result = await seed_demo(session)

    if not result["created"]:
        print(f"Demo data already seeded (space {DEMO_SPACE_NAME!r} exists). Skipping.")
        print(f"  Space: {result['space_id']}")
        return

    print("Seed complete.")
    print(f"  Users:  {', '.join(result['users']) or '(existing)'}")
    print(f"  Space:  {result['space_id']} ({DEMO_SPACE_NAME}, owner {DEMO_SPACE_OWNER})")
    for user_id, capabilities in DEMO_GRANTS.items():
        print(f"  Grant:  {user_id} {to_code(capabilities)}")


if __name__ == "__main__":
    asyncio.run(_run_seed())
