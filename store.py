from __future__ import annotations

import asyncio
import logging
import random
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models import GameConfig, GameState, Room as RoomInfo

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 4


def make_room_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


@dataclass(eq=False)
class Room:
    """A room's game state plus the lock that serializes every mutation of it."""
    state: GameState
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def code(self) -> str:
        return self.state.room.code


class RoomStore:
    def __init__(self, default_config: Optional[GameConfig] = None, rng: Optional[random.Random] = None) -> None:
        self._rooms: Dict[str, Room] = {}
        self._default_config = default_config or GameConfig()
        self._rng = rng

    def __len__(self) -> int:
        return len(self._rooms)

    def _new_config(self, overrides: Optional[Dict[str, Any]]) -> GameConfig:
        cfg = GameConfig(
            night_seconds=self._default_config.night_seconds,
            day_seconds=self._default_config.day_seconds,
            hand_size=self._default_config.hand_size,
        )
        cfg.configure({k: v for k, v in (overrides or {}).items() if v is not None})
        return cfg

    def create(self, max_players: int = 10, config: Optional[Dict[str, Any]] = None,
               code: Optional[str] = None) -> Room:
        if code is None:
            code = make_room_code()
            while code in self._rooms:
                code = make_room_code()
        state = GameState(room=RoomInfo(code=code, max_players=max_players), config=self._new_config(config))
        if self._rng is not None:
            state.rng = random.Random(self._rng.random())
        room = Room(state=state)
        self._rooms[code] = room
        logger.info("room %s created (max %d players)", code, max_players)
        return room

    def get(self, code: str) -> Optional[Room]:
        return self._rooms.get(code)

    def ensure(self, code: str, max_players: int = 10) -> Room:
        return self._rooms.get(code) or self.create(max_players=max_players, code=code)

    def delete(self, code: str) -> None:
        if self._rooms.pop(code, None) is not None:
            logger.info("room %s deleted", code)

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def summaries(self) -> List[Dict[str, Any]]:
        return [
            {
                "code": r.code,
                "players": len(r.state.players),
                "max_players": r.state.room.max_players,
                "phase": r.state.phase.value,
            }
            for r in self._rooms.values()
        ]

    def clear(self) -> None:
        self._rooms.clear()
