"""Shared fixtures and utilities for Irish Potions tests."""
from __future__ import annotations

import random
import sys
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import pytest
from httpx import AsyncClient, ASGITransport

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import engine
from catalog import default_catalog
from models import (
    CenterCard,
    CenterType,
    GameState,
    IngredientCard,
    Phase,
    PlayedCard,
    Player,
    Room,
)
from server import HUB, app

NOW = 1000.0


def make_state(count: int, seed: int = 1) -> GameState:
    """A LOBBY state with players p1..pN and a seeded random source."""
    state = GameState(room=Room(code="TEST"), rng=random.Random(seed))
    for i in range(count):
        state.players.append(Player(id=f"p{i+1}", name=f"Player{i+1}"))
    return state


def started_state(count: int, seed: int = 1) -> GameState:
    state = make_state(count, seed)
    engine.start_game(state, default_catalog(), NOW)
    return state


def player_ids(state: GameState) -> List[str]:
    return [p.id for p in state.players]


_serial = [0]


def ingredient(name: str) -> IngredientCard:
    """A fresh ingredient card with a unique id."""
    _serial[0] += 1
    return IngredientCard(id=f"{name}#t{_serial[0]}", name=name)


def center_cards(*types: CenterType) -> List[CenterCard]:
    return [CenterCard(id=f"{t.value.lower()}#c{i}", type=t) for i, t in enumerate(types)]


def rig_hands(state: GameState, hands: Dict[str, Sequence[str]]) -> None:
    """Replace the given players' hands with cards of the named ingredients."""
    for pid, names in hands.items():
        state.hands[pid] = [ingredient(n) for n in names]


def set_table(state: GameState, plays: Sequence[Tuple[str, str]], revealed: bool = False) -> None:
    state.table = [PlayedCard(player_id=pid, card=ingredient(name), revealed=revealed) for pid, name in plays]


def play_first(state: GameState, player_id: str) -> bool:
    """Play the first card of the player's hand."""
    return engine.play_card(state, player_id, state.hands[player_id][0].id, NOW)


def to_day(state: GameState, name: str = "faerie_thistle") -> None:
    """Every player plays one copy of the same ingredient, which lands the game in DAY."""
    rig_hands(state, {pid: [name, name, name] for pid in player_ids(state)})
    for pid in player_ids(state):
        play_first(state, pid)
    assert state.phase in (Phase.DAY, Phase.ENDED)


@pytest.fixture
def state() -> GameState:
    """A started five-player game."""
    return started_state(5)


@pytest.fixture
async def client():
    """Async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(autouse=True)
def reset_rooms():
    """Start each test with an empty room registry."""
    HUB.store.clear()
    yield
    HUB.store.clear()
