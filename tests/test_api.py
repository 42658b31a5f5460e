import asyncio

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from main import app
from freetime.api.api_v1.endpoints import groups as groups_endpoint
from freetime.api.api_v1.endpoints.stream import watch_disconnect
from freetime.core.auth import generate_user_id

# Test data
alice = {"userName": "Alice"}
bob = {"userName": "Bob"}

monday_morning = {
    "day": 0,
    "startHour": 9,
    "startMinute": 0,
    "endHour": 10,
    "endMinute": 0,
    "label": "Standup"
}

monday_afternoon = {
    "day": 0,
    "startHour": 14,
    "startMinute": 0,
    "endHour": 15,
    "endMinute": 30
}


def headers_for(user):
    return {"X-User-Id": generate_user_id(user["userName"])}


def api_client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_group_schedule_flow(mongo):
    """
    1. Alice creates a group, Bob joins it
    2. Both add busy blocks
    3. Free slots reflect everyone's blocks
    4. Bob cannot touch Alice's block, Alice can
    """
    async with api_client() as client:
        response = await client.post("/api/v1/groups", json={**alice, "code": "abcd"})
        assert response.status_code == 201
        assert response.json()["code"] == "ABCD"

        response = await client.post("/api/v1/groups/ABCD/join", json=bob)
        assert response.status_code == 200
        assert [m["userName"] for m in response.json()["members"]] == ["Alice", "Bob"]

        response = await client.post("/api/v1/groups/ABCD/blocks", json=monday_morning, headers=headers_for(alice))
        assert response.status_code == 201
        alice_block = response.json()
        assert alice_block["userName"] == "Alice"
        assert alice_block["label"] == "Standup"

        response = await client.post("/api/v1/groups/ABCD/blocks", json=monday_afternoon, headers=headers_for(bob))
        assert response.status_code == 201
        assert response.json()["label"] == "Busy"

        response = await client.get("/api/v1/groups/ABCD/free-slots", params={"weekStart": "2026-10-14"})
        assert response.status_code == 200
        view = response.json()
        assert view["memberCount"] == 2
        assert view["weekStart"] == "2026-10-12"
        monday = view["days"][0]
        assert monday["calendarDate"] == "2026-10-12"
        assert [s["display"] for s in monday["slots"]] == [
            "12:00 AM - 8:59 AM",
            "10:00 AM - 1:59 PM",
            "3:30 PM - 11:59 PM",
        ]
        assert len(view["days"]) == 7

        response = await client.delete(f"/api/v1/groups/ABCD/blocks/{alice_block['id']}", headers=headers_for(bob))
        assert response.status_code == 403

        response = await client.patch(
            f"/api/v1/groups/ABCD/blocks/{alice_block['id']}",
            json={"label": "Mine now"},
            headers=headers_for(bob)
        )
        assert response.status_code == 403

        response = await client.patch(
            f"/api/v1/groups/ABCD/blocks/{alice_block['id']}",
            json={"endHour": 11},
            headers=headers_for(alice)
        )
        assert response.status_code == 200

        response = await client.get("/api/v1/groups/ABCD/blocks", params={"userId": generate_user_id("Alice")})
        assert [b["endHour"] for b in response.json()] == [11]

        response = await client.delete(f"/api/v1/groups/ABCD/blocks/{alice_block['id']}", headers=headers_for(alice))
        assert response.status_code == 200

        response = await client.get("/api/v1/groups/ABCD/blocks")
        assert [b["userName"] for b in response.json()] == ["Bob"]


@pytest.mark.asyncio
async def test_create_group_conflict_and_random_code(mongo):
    async with api_client() as client:
        response = await client.post("/api/v1/groups", json=alice)
        assert response.status_code == 201
        code = response.json()["code"]
        assert len(code) == 4 and code.isupper()

        response = await client.post("/api/v1/groups", json={**bob, "code": code})
        assert response.status_code == 409


@pytest.mark.asyncio
async def test_invalid_input_is_rejected(mongo):
    async with api_client() as client:
        response = await client.post("/api/v1/groups/AB/join", json=alice)
        assert response.status_code == 422

        await client.post("/api/v1/groups/ABCD/join", json=alice)
        backwards = {**monday_morning, "endHour": 8}
        response = await client.post("/api/v1/groups/ABCD/blocks", json=backwards, headers=headers_for(alice))
        assert response.status_code == 422

        response = await client.post("/api/v1/groups/ABCD/blocks", json=monday_morning)
        assert response.status_code == 400

        response = await client.post("/api/v1/groups/ABCD/blocks", json=monday_morning, headers=headers_for(bob))
        assert response.status_code == 403

        response = await client.get("/api/v1/groups/ZZZZ")
        assert response.status_code == 404


@pytest.mark.asyncio
async def test_rename_and_identity(mongo):
    async with api_client() as client:
        response = await client.post("/api/v1/identity", json={"userName": " Alice "})
        assert response.json() == {"userId": generate_user_id("Alice"), "userName": "Alice"}

        await client.post("/api/v1/groups/ABCD/join", json=alice)
        response = await client.put("/api/v1/groups/ABCD/members/me", json={"userName": "Alicia"}, headers=headers_for(alice))
        assert response.status_code == 200
        assert response.json()["userName"] == "Alicia"

        response = await client.get("/api/v1/groups/ABCD/members")
        assert [m["userName"] for m in response.json()] == ["Alicia"]


@pytest.mark.asyncio
async def test_store_down_returns_503(mongo_down):
    async with api_client() as client:
        response = await client.post("/api/v1/groups/ABCD/join", json=alice)
        assert response.status_code == 503

        response = await client.get("/api/v1/groups/ABCD/blocks")
        assert response.status_code == 200
        assert response.json() == []


def test_stream_sends_initial_snapshot(mongo_sync):
    client = TestClient(app)
    with client.websocket_connect("/api/v1/groups/abcd/stream") as websocket:
        blocks_message = websocket.receive_json()
        members_message = websocket.receive_json()

    assert blocks_message["type"] == "blocks"
    assert blocks_message["blocks"] == []
    assert len(blocks_message["freeSlots"]) == 7
    assert members_message == {"type": "members", "members": []}


@pytest.mark.asyncio
async def test_patch_with_nulls_leaves_block_unchanged(mongo):
    async with api_client() as client:
        await client.post("/api/v1/groups/ABCD/join", json=alice)
        response = await client.post("/api/v1/groups/ABCD/blocks", json=monday_morning, headers=headers_for(alice))
        block_id = response.json()["id"]

        response = await client.patch(
            f"/api/v1/groups/ABCD/blocks/{block_id}",
            json={"day": None, "startHour": None},
            headers=headers_for(alice)
        )
        assert response.status_code == 200

        response = await client.get("/api/v1/groups/ABCD/blocks")
        [block] = response.json()
        assert (block["day"], block["startHour"], block["label"]) == (0, 9, "Standup")

        response = await client.get("/api/v1/groups/ABCD/free-slots")
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_random_code_is_retried_after_collision(mongo, monkeypatch):
    codes = iter(["TAKN", "TAKN", "FREE"])
    monkeypatch.setattr(groups_endpoint, "generate_group_code", lambda: next(codes))

    async with api_client() as client:
        await client.post("/api/v1/groups/TAKN/join", json=bob)

        response = await client.post("/api/v1/groups", json=alice)
        assert response.status_code == 201
        assert response.json()["code"] == "FREE"


@pytest.mark.asyncio
async def test_random_code_gives_up_after_repeated_collisions(mongo, monkeypatch):
    monkeypatch.setattr(groups_endpoint, "generate_group_code", lambda: "TAKN")

    async with api_client() as client:
        await client.post("/api/v1/groups/TAKN/join", json=bob)

        response = await client.post("/api/v1/groups", json=alice)
        assert response.status_code == 409


class FrameSource:
    """Stands in for a WebSocket by replaying raw ASGI messages."""

    def __init__(self, *messages):
        self.messages = list(messages)

    async def receive(self):
        message = self.messages.pop(0)
        if isinstance(message, Exception):
            raise message
        return message


@pytest.mark.asyncio
async def test_stream_watcher_ignores_binary_frames():
    queue = asyncio.Queue()
    websocket = FrameSource(
        {"type": "websocket.receive", "bytes": b"\x00\x01"},
        {"type": "websocket.receive", "text": "ping"},
        {"type": "websocket.disconnect", "code": 1000}
    )

    await watch_disconnect(websocket, queue)

    assert websocket.messages == []
    assert queue.get_nowait() is None
    assert queue.empty()


@pytest.mark.asyncio
async def test_stream_watcher_stops_stream_when_receive_fails():
    queue = asyncio.Queue()
    websocket = FrameSource(RuntimeError("Cannot call receive once a disconnect message has been received."))

    await watch_disconnect(websocket, queue)

    assert queue.get_nowait() is None
