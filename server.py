# Run with: uvicorn server:app --host 0.0.0.0 --port 8000
from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Set

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

import engine
from catalog import Catalog, list_assets, load_catalog
from models import GameConfig
from projection import shape_state_for
from schemas import GAME_ACTION, ChatMessage, RoomCreate
from settings import settings
from store import Room, RoomStore

logger = logging.getLogger(__name__)


class WSClientType(str, Enum):
    SPECTATOR = "spectator"
    PLAYER = "player"


@dataclass(eq=False)
class WSClient:
    websocket: WebSocket
    client_type: WSClientType
    player_id: Optional[str] = None


class Hub:
    """Routes intents to the engine and pushes each viewer its own projection."""

    def __init__(self, store: RoomStore, catalog: Catalog) -> None:
        self.store = store
        self.catalog = catalog
        self._clients: Dict[str, Set[WSClient]] = {}

    def clients(self, code: str) -> Set[WSClient]:
        return self._clients.setdefault(code, set())

    async def _send(self, ws: WebSocket, msg: Dict[str, Any]) -> None:
        await ws.send_text(json.dumps(msg, ensure_ascii=False))

    async def _broadcast(self, code: str, msg: Dict[str, Any]) -> None:
        dead_clients = []
        for c in list(self.clients(code)):
            try:
                await self._send(c.websocket, msg)
            except Exception:
                dead_clients.append(c)
        for c in dead_clients:
            self.clients(code).discard(c)

    async def sync_room(self, room: Room) -> None:
        dead_clients = []
        for c in list(self.clients(room.code)):
            viewer = c.player_id if c.client_type == WSClientType.PLAYER else None
            try:
                await self._send(c.websocket, {"type": "GAME_STATE", "data": shape_state_for(room.state, viewer)})
            except Exception:
                dead_clients.append(c)
        for c in dead_clients:
            logger.debug("dropping client %s from room %s", c.player_id, room.code)
            self.clients(room.code).discard(c)

    def apply_action(self, room: Room, player_id: str, raw: Dict[str, Any], now: float) -> bool:
        """Validate one intent and hand it to the engine. Caller holds the room lock."""
        try:
            action = GAME_ACTION.validate_python(raw)
        except ValidationError:
            return False
        s = room.state
        if action.type == "start":
            if not engine.is_host(s, player_id):
                return False
            return engine.start_game(s, self.catalog, now)
        if action.type == "ready":
            return engine.set_ready(s, player_id, action.ready)
        if action.type == "play_card":
            return engine.play_card(s, player_id, action.card_id, now)
        if action.type == "unplay_card":
            return engine.unplay_card(s, player_id)
        if action.type == "claim_card":
            return engine.claim_card(s, player_id, action.card_id)
        if action.type == "resolution_action":
            return engine.resolution_action(s, player_id, action.choice, now)
        if action.type == "yew_target":
            return engine.yew_target(s, player_id, action.ingredient, now)
        if action.type == "hazel_guess":
            return engine.hazel_guess(s, player_id, action.ingredient, now)
        if action.type == "end_discussion":
            return engine.end_discussion(s, player_id, now)
        if action.type == "send_rune":
            return engine.send_rune(s, player_id, action.to_player_id, action.message) is not None
        return False

    async def act(self, room: Room, player_id: str, raw: Dict[str, Any]) -> bool:
        async with room.lock:
            changed = self.apply_action(room, player_id, raw, time.time())
        if changed:
            await self.sync_room(room)
        return changed

    async def join(self, room: Room, player_id: str, name: str) -> bool:
        async with room.lock:
            ok = engine.add_player(room.state, player_id, name)
        if ok:
            await self.sync_room(room)
        return ok

    async def disconnect(self, room: Room, player_id: str) -> None:
        async with room.lock:
            changed = engine.set_connected(room.state, player_id, False, time.time())
        if changed:
            await self.sync_room(room)

    async def chat(self, room: Room, player_id: str, message: str) -> None:
        p = room.state.player(player_id)
        if not p:
            return
        await self._broadcast(room.code, {
            "type": "CHAT",
            "player_id": player_id,
            "name": p.name,
            "message": message,
            "ts": time.time(),
        })

    async def tick_all(self) -> None:
        now = time.time()
        for room in self.store.rooms():
            async with room.lock:
                changed = engine.tick(room.state, now)
            if changed:
                await self.sync_room(room)

    async def run_poller(self) -> None:
        while True:
            try:
                await self.tick_all()
            except Exception:
                logger.exception("timer poller failed")
            await asyncio.sleep(settings.TICK_SECONDS)


def _default_config() -> GameConfig:
    return GameConfig(
        night_seconds=settings.NIGHT_SECONDS,
        day_seconds=settings.DAY_SECONDS,
        hand_size=settings.HAND_SIZE,
    )


HUB = Hub(RoomStore(default_config=_default_config()), load_catalog(settings.ASSETS_DIR))


@asynccontextmanager
async def lifespan(_app: FastAPI):
    task = asyncio.create_task(HUB.run_poller())
    logger.info("%s ready, %d ingredients, %d heroes", settings.APP_NAME,
                len(HUB.catalog.ingredients), len(HUB.catalog.roles))
    try:
        yield
    finally:
        task.cancel()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.ASSETS_DIR and settings.ASSETS_DIR.is_dir():
    app.mount("/assets", StaticFiles(directory=str(settings.ASSETS_DIR)), name="assets")


@app.get("/")
async def root():
    return {"ok": True, "hint": "Create a room with POST /api/rooms, then connect to /ws/{code}."}


@app.get("/api/health")
async def health():
    return {"ok": True, "ts": time.time(), "rooms": len(HUB.store)}


@app.get("/api/assets/list")
async def assets_list():
    if not settings.ASSETS_DIR:
        return {"heroes": [], "ingredients": []}
    return list_assets(settings.ASSETS_DIR)


@app.get("/api/rooms")
async def api_rooms():
    return {"ok": True, "rooms": HUB.store.summaries()}


@app.post("/api/rooms")
async def api_create_room(payload: Dict[str, Any]):
    try:
        req = RoomCreate.model_validate(payload or {})
    except ValidationError as e:
        return {"ok": False, "error": str(e)}
    room = HUB.store.create(
        max_players=min(req.max_players, settings.MAX_PLAYERS),
        config={"night_seconds": req.night_seconds, "day_seconds": req.day_seconds, "hand_size": req.hand_size},
    )
    return {"ok": True, "code": room.code}


@app.post("/api/rooms/{code}/config")
async def api_config(code: str, payload: Dict[str, Any]):
    room = HUB.store.get(code)
    if not room:
        return {"ok": False, "error": "Unknown room"}
    async with room.lock:
        ok = engine.configure(room.state, payload)
    if not ok:
        return {"ok": False, "error": "The game has already started"}
    await HUB.sync_room(room)
    return {"ok": True}


@app.post("/api/rooms/{code}/join")
async def api_join(code: str, payload: Dict[str, Any]):
    room = HUB.store.get(code)
    if not room:
        return {"ok": False, "error": "Unknown room"}
    pid = payload.get("player_id") or uuid.uuid4().hex[:8]
    name = (payload.get("name") or "").strip()
    if not await HUB.join(room, pid, name):
        return {"ok": False, "error": "Room is full or the game has started"}
    return {"ok": True, "player_id": pid}


@app.post("/api/rooms/{code}/action")
async def api_action(code: str, payload: Dict[str, Any]):
    room = HUB.store.get(code)
    player_id = payload.get("player_id")
    action = payload.get("action")
    if not room:
        return {"ok": False, "error": "Unknown room"}
    if not player_id or not isinstance(action, dict):
        return {"ok": False, "error": "Missing player_id or action"}
    changed = await HUB.act(room, player_id, action)
    return {"ok": True, "changed": changed}


@app.get("/api/rooms/{code}/state")
async def api_state(code: str):
    """Spectator view; players get their private view over the WebSocket."""
    room = HUB.store.get(code)
    if not room:
        return {"ok": False, "error": "Unknown room"}
    return {"ok": True, "state": shape_state_for(room.state, None)}


@app.websocket("/ws/{code}")
async def websocket_endpoint(ws: WebSocket, code: str):
    await ws.accept()
    qp = dict(ws.query_params)
    client = qp.get("client", "player")
    room = HUB.store.get(code)

    if client not in ("spectator", "player") or room is None:
        await ws.close()
        return

    ctype = WSClientType.PLAYER if client == "player" else WSClientType.SPECTATOR
    player_id = None
    if ctype == WSClientType.PLAYER:
        player_id = qp.get("player_id") or uuid.uuid4().hex[:8]
        if not await HUB.join(room, player_id, qp.get("name", "")):
            await HUB._send(ws, {"type": "ERROR", "error": "Room is full or the game has started"})
            await ws.close()
            return
    else:
        room.state.spectators.append(str(id(ws)))

    client_obj = WSClient(websocket=ws, client_type=ctype, player_id=player_id)
    HUB.clients(code).add(client_obj)

    await HUB._send(ws, {"type": "HELLO", "client": client, "player_id": player_id, "room": code})
    await HUB._send(ws, {"type": "GAME_STATE", "data": shape_state_for(room.state, player_id)})

    try:
        while True:
            msg = await ws.receive_text()
            try:
                data = json.loads(msg)
            except Exception:
                data = {"type": "PING"}
            if not isinstance(data, dict):
                continue
            mtype = data.get("type")
            if mtype == "PING":
                await HUB._send(ws, {"type": "PONG"})
            elif mtype == "ACTION" and player_id and isinstance(data.get("action"), dict):
                await HUB.act(room, player_id, data["action"])
            elif mtype == "CHAT" and player_id:
                try:
                    chat = ChatMessage.model_validate(data)
                except ValidationError:
                    continue
                await HUB.chat(room, player_id, chat.message)
    except Exception:
        HUB.clients(code).discard(client_obj)
        if player_id:
            await HUB.disconnect(room, player_id)
        else:
            room.state.spectators.remove(str(id(ws)))
        try:
            await ws.close()
        except Exception:
            pass
