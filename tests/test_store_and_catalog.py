"""Tests for the room registry and the asset catalog."""
from __future__ import annotations

import random

from catalog import default_catalog, list_assets, load_catalog
from models import GameConfig, Team
from store import CODE_ALPHABET, RoomStore


class TestRoomStore:
    def test_create_and_get(self):
        store = RoomStore()
        room = store.create(max_players=6)
        assert store.get(room.code) is room
        assert room.state.room.max_players == 6
        assert all(ch in CODE_ALPHABET for ch in room.code)

    def test_rooms_do_not_share_state(self):
        store = RoomStore()
        a, b = store.create(), store.create()
        assert a.code != b.code
        assert a.state is not b.state
        assert a.state.config is not b.state.config

    def test_default_config_and_overrides(self):
        store = RoomStore(default_config=GameConfig(night_seconds=40, day_seconds=20, hand_size=2))
        room = store.create(config={"day_seconds": 90, "hand_size": None})
        assert room.state.config.night_seconds == 40
        assert room.state.config.day_seconds == 90
        assert room.state.config.hand_size == 2

    def test_ensure_reuses_existing(self):
        store = RoomStore()
        room = store.ensure("ABCD")
        assert store.ensure("ABCD") is room
        assert len(store) == 1

    def test_delete(self):
        store = RoomStore()
        room = store.create()
        store.delete(room.code)
        assert store.get(room.code) is None
        store.delete(room.code)

    def test_seeded_store_is_reproducible(self):
        first = RoomStore(rng=random.Random(5)).create(code="AAAA")
        second = RoomStore(rng=random.Random(5)).create(code="AAAA")
        assert first.state.rng.random() == second.state.rng.random()


class TestCatalog:
    def test_default_catalog(self):
        catalog = default_catalog()
        assert len(catalog.ingredients) == 7
        assert sum(1 for r in catalog.roles if r.team == Team.EVIL) == 3
        assert sum(1 for r in catalog.roles if r.team == Team.GOOD) == 5

    def test_missing_directory_falls_back(self, tmp_path):
        catalog = load_catalog(tmp_path / "nowhere")
        assert catalog.ingredient_names == default_catalog().ingredient_names

    def test_scans_images(self, tmp_path):
        (tmp_path / "ingredients").mkdir()
        (tmp_path / "heroes").mkdir()
        (tmp_path / "ingredients" / "faerie_thistle.png").write_bytes(b"")
        (tmp_path / "ingredients" / "notes.txt").write_text("skip me")
        (tmp_path / "heroes" / "evil_banshee.jpg").write_bytes(b"")
        (tmp_path / "heroes" / "good_finn.webp").write_bytes(b"")

        catalog = load_catalog(tmp_path)

        assert catalog.ingredient_names == ["faerie_thistle"]
        assert catalog.ingredients[0].image == "/assets/ingredients/faerie_thistle.png"
        teams = {r.id: r.team for r in catalog.roles}
        assert teams == {"evil_banshee": Team.EVIL, "good_finn": Team.GOOD}
        assert list_assets(tmp_path)["ingredients"] == ["faerie_thistle.png"]

    def test_display_names(self):
        names = {r.id: r.name for r in default_catalog().roles}
        assert names["good_cu_chullain"] == "Cú Chulainn"
        assert names["evil_dullahan"] == "The Dullahan"
