"""End-to-end walk through grants, a denied post, and the audit trail it leaves."""

import pytest
from httpx import AsyncClient

from natter.audit.log import AuditLog


class TestGrantScenario:
    @pytest.mark.anyio
    async def test_read_then_write_grant(
        self, client: AsyncClient, session_factory, registered,
    ) -> None:
        alice, bob = registered["alice"], registered["bob"]
        audit = AuditLog(session_factory)
        before = len(await audit.list_entries())

        resp = await client.post("/spaces", json={"name": "general", "owner": "alice"}, auth=alice)
        assert resp.status_code == 201
        space_id = resp.json()["space_id"]
        assert space_id == 1

        resp = await client.post(
            f"/spaces/{space_id}/members", json={"username": "bob", "permissions": "r"}, auth=alice,
        )
        assert resp.status_code == 200

        resp = await client.post(
            f"/spaces/{space_id}/messages", json={"author": "bob", "message": "hi"}, auth=bob,
        )
        assert resp.status_code == 403

        resp = await client.post(
            f"/spaces/{space_id}/members", json={"username": "bob", "permissions": "rw"}, auth=alice,
        )
        assert resp.status_code == 200

        resp = await client.post(
            f"/spaces/{space_id}/messages", json={"author": "bob", "message": "hello"}, auth=bob,
        )
        assert resp.status_code == 201
        assert resp.json()["msg_id"] == 1

        message = await client.get(f"/spaces/{space_id}/messages/1", auth=bob)
        assert message.json()["author"] == "bob"

        entries = (await audit.list_entries())[before:]
        assert [e["status"] for e in entries][:5] == [201, 200, 403, 200, 201]
        assert [e["user_id"] for e in entries][:5] == ["alice", "alice", "bob", "alice", "bob"]
        ids = [e["audit_id"] for e in entries]
        assert ids == sorted(ids)
