"""Tests for REST and WebSocket endpoints."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient

from server import HUB, app


async def create_room(client: AsyncClient, **payload) -> str:
    response = await client.post("/api/rooms", json=payload)
    data = response.json()
    assert data["ok"] is True
    return data["code"]


async def join(client: AsyncClient, code: str, name: str) -> str:
    response = await client.post(f"/api/rooms/{code}/join", json={"name": name})
    data = response.json()
    assert data["ok"] is True
    return data["player_id"]


class TestHealthEndpoint:
    """Test health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_ok(self, client: AsyncClient):
        response = await client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["rooms"] == 0


class TestRootEndpoint:
    @pytest.mark.asyncio
    async def test_root_returns_hint(self, client: AsyncClient):
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert "hint" in data


class TestRooms:
    @pytest.mark.asyncio
    async def test_create_room_returns_code(self, client: AsyncClient):
        code = await create_room(client)
        assert len(code) == 4
        response = await client.get("/api/rooms")
        rooms = response.json()["rooms"]
        assert rooms == [{"code": code, "players": 0, "max_players": 10, "phase": "LOBBY"}]

    @pytest.mark.asyncio
    async def test_create_room_with_config(self, client: AsyncClient):
        code = await create_room(client, night_seconds=45, hand_size=4)
        config = HUB.store.get(code).state.config
        assert config.night_seconds == 45
        assert config.hand_size == 4

    @pytest.mark.asyncio
    async def test_create_room_rejects_bad_capacity(self, client: AsyncClient):
        response = await client.post("/api/rooms", json={"max_players": 50})
        assert response.json()["ok"] is False

    @pytest.mark.asyncio
    async def test_config_endpoint(self, client: AsyncClient):
        code = await create_room(client)
        response = await client.post(f"/api/rooms/{code}/config", json={"day_seconds": 60})
        assert response.json()["ok"] is True
        assert HUB.store.get(code).state.config.day_seconds == 60

    @pytest.mark.asyncio
    async def test_unknown_room(self, client: AsyncClient):
        response = await client.post("/api/rooms/ZZZZ/join", json={"name": "A"})
        assert response.json()["ok"] is False


class TestJoinEndpoint:
    @pytest.mark.asyncio
    async def test_join_returns_player_id(self, client: AsyncClient):
        code = await create_room(client)
        pid = await join(client, code, "Aoife")
        assert len(pid) > 0
        assert HUB.store.get(code).state.player(pid).name == "Aoife"

    @pytest.mark.asyncio
    async def test_join_truncates_long_name(self, client: AsyncClient):
        code = await create_room(client)
        pid = await join(client, code, "A" * 50)
        assert len(HUB.store.get(code).state.player(pid).name) == 24

    @pytest.mark.asyncio
    async def test_room_capacity(self, client: AsyncClient):
        code = await create_room(client, max_players=2)
        await join(client, code, "A")
        await join(client, code, "B")
        response = await client.post(f"/api/rooms/{code}/join", json={"name": "C"})
        assert response.json()["ok"] is False


class TestActionEndpoint:
    @pytest.mark.asyncio
    async def test_action_requires_player_id(self, client: AsyncClient):
        code = await create_room(client)
        response = await client.post(f"/api/rooms/{code}/action", json={"action": {"type": "start"}})
        assert response.json()["ok"] is False

    @pytest.mark.asyncio
    async def test_invalid_action_changes_nothing(self, client: AsyncClient):
        code = await create_room(client)
        pid = await join(client, code, "A")
        response = await client.post(f"/api/rooms/{code}/action",
                                     json={"player_id": pid, "action": {"type": "teleport"}})
        data = response.json()
        assert data["ok"] is True
        assert data["changed"] is False

    @pytest.mark.asyncio
    async def test_start_and_play(self, client: AsyncClient):
        code = await create_room(client)
        pids = [await join(client, code, f"Player{i}") for i in range(3)]

        response = await client.post(f"/api/rooms/{code}/action",
                                     json={"player_id": pids[0], "action": {"type": "start"}})
        assert response.json()["changed"] is True

        response = await client.get(f"/api/rooms/{code}/state")
        assert response.json()["state"]["phase"] == "NIGHT"
        card_id = HUB.store.get(code).state.hands[pids[0]][0].id

        response = await client.post(f"/api/rooms/{code}/action",
                                     json={"player_id": pids[0], "action": {"type": "play_card", "card_id": card_id}})
        assert response.json()["changed"] is True
        assert len(HUB.store.get(code).state.table) == 1

    @pytest.mark.asyncio
    async def test_only_host_can_start(self, client: AsyncClient):
        code = await create_room(client)
        pids = [await join(client, code, f"Player{i}") for i in range(3)]

        response = await client.post(f"/api/rooms/{code}/action",
                                     json={"player_id": pids[1], "action": {"type": "start"}})
        assert response.json()["changed"] is False
        assert HUB.store.get(code).state.phase.value == "LOBBY"


class TestStateEndpoint:
    @pytest.mark.asyncio
    async def test_state_is_spectator_view(self, client: AsyncClient):
        code = await create_room(client)
        pids = [await join(client, code, f"Player{i}") for i in range(3)]
        await client.post(f"/api/rooms/{code}/action",
                          json={"player_id": pids[0], "action": {"type": "start"}})

        response = await client.get(f"/api/rooms/{code}/state", params={"player_id": pids[0]})
        view = response.json()["state"]

        assert view["me"] is None
        assert view["my_pending"] is None
        assert len(view["hands"][pids[0]]) == 3
        assert all(c["id"] == "hidden" for c in view["hands"][pids[0]])


class TestWebSocket:
    def test_player_receives_hello_and_state(self):
        code = HUB.store.create().code
        with TestClient(app) as tc:
            with tc.websocket_connect(f"/ws/{code}?player_id=abc&name=Niamh") as ws:
                hello = ws.receive_json()
                assert hello["type"] == "HELLO"
                assert hello["player_id"] == "abc"
                state = ws.receive_json()
                assert state["type"] == "GAME_STATE"
                assert state["data"]["players"][0]["name"] == "Niamh"

                ws.send_json({"type": "PING"})
                msg = ws.receive_json()
                while msg["type"] != "PONG":
                    msg = ws.receive_json()
