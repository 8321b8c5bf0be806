"""Tests for space and membership endpoints."""

import pytest
from httpx import AsyncClient


async def _create_space(client: AsyncClient, auth, name: str = "general") -> int:
    resp = await client.post("/spaces", json={"name": name, "owner": auth[0]}, auth=auth)
    assert resp.status_code == 201, resp.text
    return resp.json()["space_id"]


class TestCreateSpaceEndpoint:
    @pytest.mark.anyio
    async def test_create_returns_201(self, client: AsyncClient, registered) -> None:
        resp = await client.post(
            "/spaces", json={"name": "general", "owner": "alice"}, auth=registered["alice"],
        )
        assert resp.status_code == 201
        assert resp.json() == {"space_id": 1, "name": "general", "uri": "/spaces/1"}

    @pytest.mark.anyio
    async def test_duplicate_returns_409(self, client: AsyncClient, registered) -> None:
        await _create_space(client, registered["alice"])
        resp = await client.post(
            "/spaces", json={"name": "general", "owner": "bob"}, auth=registered["bob"],
        )
        assert resp.status_code == 409

    @pytest.mark.anyio
    async def test_owner_must_be_caller(self, client: AsyncClient, registered) -> None:
        resp = await client.post(
            "/spaces", json={"name": "general", "owner": "bob"}, auth=registered["alice"],
        )
        assert resp.status_code == 400


class TestGetSpaceEndpoint:
    @pytest.mark.anyio
    async def test_owner_reads(self, client: AsyncClient, registered) -> None:
        space_id = await _create_space(client, registered["alice"])
        resp = await client.get(f"/spaces/{space_id}", auth=registered["alice"])
        assert resp.status_code == 200
        assert resp.json()["owner"] == "alice"

    @pytest.mark.anyio
    async def test_stranger_forbidden(self, client: AsyncClient, registered) -> None:
        space_id = await _create_space(client, registered["alice"])
        resp = await client.get(f"/spaces/{space_id}", auth=registered["bob"])
        assert resp.status_code == 403
        assert resp.json() == {"detail": "permission denied"}

    @pytest.mark.anyio
    async def test_unknown_space_404(self, client: AsyncClient, registered) -> None:
        resp = await client.get("/spaces/99", auth=registered["alice"])
        assert resp.status_code == 404


class TestMembersEndpoints:
    @pytest.mark.anyio
    async def test_grant_and_list(self, client: AsyncClient, registered) -> None:
        space_id = await _create_space(client, registered["alice"])
        resp = await client.post(
            f"/spaces/{space_id}/members",
            json={"username": "bob", "permissions": "rw"},
            auth=registered["alice"],
        )
        assert resp.status_code == 200
        assert resp.json() == {"username": "bob", "permissions": "rw-"}

        listing = await client.get(f"/spaces/{space_id}/members", auth=registered["alice"])
        assert listing.json() == [{"username": "bob", "permissions": "rw-"}]

    @pytest.mark.anyio
    async def test_invalid_permissions_400(self, client: AsyncClient, registered) -> None:
        space_id = await _create_space(client, registered["alice"])
        resp = await client.post(
            f"/spaces/{space_id}/members",
            json={"username": "bob", "permissions": "rx"},
            auth=registered["alice"],
        )
        assert resp.status_code == 400

    @pytest.mark.anyio
    async def test_member_cannot_escalate(self, client: AsyncClient, registered) -> None:
        space_id = await _create_space(client, registered["alice"])
        await client.post(
            f"/spaces/{space_id}/members",
            json={"username": "bob", "permissions": "r"},
            auth=registered["alice"],
        )
        resp = await client.post(
            f"/spaces/{space_id}/members",
            json={"username": "carol", "permissions": "rw"},
            auth=registered["bob"],
        )
        assert resp.status_code == 403

    @pytest.mark.anyio
    async def test_revoke(self, client: AsyncClient, registered) -> None:
        space_id = await _create_space(client, registered["alice"])
        await client.post(
            f"/spaces/{space_id}/members",
            json={"username": "bob", "permissions": "r"},
            auth=registered["alice"],
        )
        resp = await client.delete(f"/spaces/{space_id}/members/bob", auth=registered["alice"])
        assert resp.status_code == 200

        again = await client.delete(f"/spaces/{space_id}/members/bob", auth=registered["alice"])
        assert again.status_code == 404

        read = await client.get(f"/spaces/{space_id}", auth=registered["bob"])
        assert read.status_code == 403

    @pytest.mark.anyio
    async def test_members_listing_owner_only(self, client: AsyncClient, registered) -> None:
        space_id = await _create_space(client, registered["alice"])
        resp = await client.get(f"/spaces/{space_id}/members", auth=registered["bob"])
        assert resp.status_code == 403
