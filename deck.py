from __future__ import annotations

import random
import uuid
from typing import List, Optional, Sequence, TypeVar

from catalog import Catalog, IngredientSpec
from models import CenterCard, CenterType, GameState, IngredientCard, Role, Team

T = TypeVar("T")

COPIES_PER_INGREDIENT = 10
CENTER_CARDS_PER_TYPE = 8


def shuffle(items: List[T], rng: random.Random) -> List[T]:
    rng.shuffle(items)
    return items


def sample(items: Sequence[T], count: int, rng: random.Random) -> List[T]:
    count = max(0, min(count, len(items)))
    return rng.sample(list(items), count)


def get_evil_count(player_count: int) -> int:
    evil = max(1, player_count // 3)
    if player_count >= 5:
        evil = max(2, evil)
    return evil


def build_ingredient_deck(ingredients: Sequence[IngredientSpec], rng: random.Random) -> List[IngredientCard]:
    cards = [
        IngredientCard(id=f"{spec.name}#{i}", name=spec.name, image=spec.image)
        for spec in ingredients
        for i in range(COPIES_PER_INGREDIENT)
    ]
    return shuffle(cards, rng)


def build_center_deck(rng: random.Random) -> List[CenterCard]:
    cards = []
    for ctype in (CenterType.MILK, CenterType.BLOOD):
        for i in range(CENTER_CARDS_PER_TYPE):
            cards.append(CenterCard(id=f"{ctype.value.lower()}#{i}", type=ctype))
    return shuffle(cards, rng)


def assign_roles(state: GameState, role_catalog: Sequence[Role]) -> None:
    """Deal one role per player; undealt catalog roles become the hero deck."""
    rng = state.rng
    n = len(state.players)
    evil_count = min(get_evil_count(n), n)
    good_count = n - evil_count

    good_roles = [r for r in role_catalog if r.team == Team.GOOD]
    evil_roles = [r for r in role_catalog if r.team == Team.EVIL]
    chosen = sample(good_roles, good_count, rng) + sample(evil_roles, evil_count, rng)
    while len(chosen) < n:
        filler_id = f"villager_{uuid.uuid4().hex[:8]}"
        chosen.append(Role(id=filler_id, name="Villager", team=Team.GOOD))
    shuffle(chosen, rng)

    dealt = {r.id for r in chosen}
    state.roles = {r.id: r for r in role_catalog}
    for p, role in zip(state.players, chosen):
        p.role_id = role.id
        state.roles[role.id] = role
    state.hero_deck = shuffle([r.id for r in role_catalog if r.id not in dealt], rng)


def draw_ingredient(state: GameState) -> Optional[IngredientCard]:
    deck = state.deck
    if not deck.draw_pile and deck.discard_pile:
        deck.draw_pile = shuffle(deck.discard_pile, state.rng)
        deck.discard_pile = []
    if not deck.draw_pile:
        return None
    return deck.draw_pile.pop()


def deal_to_hand_size(state: GameState) -> None:
    for p in state.players:
        hand = state.hands.setdefault(p.id, [])
        while len(hand) < state.config.hand_size:
            card = draw_ingredient(state)
            if card is None:
                break
            hand.append(card)


def discard_ingredient(state: GameState, card: IngredientCard) -> None:
    if any(c.id == card.id for c in state.deck.discard_pile):
        return
    state.deck.discard_pile.append(card)


def setup_decks(state: GameState, catalog: Catalog) -> None:
    state.ingredient_names = catalog.ingredient_names
    state.deck.draw_pile = build_ingredient_deck(catalog.ingredients, state.rng)
    state.deck.discard_pile = []
    state.center.cards = build_center_deck(state.rng)
    state.center.revealed = []
    state.center.discarded = []
    state.hands = {p.id: [] for p in state.players}
    assign_roles(state, catalog.roles)
    deal_to_hand_size(state)


def take_center(state: GameState, card_id: str) -> Optional[CenterCard]:
    cards = state.center.cards
    for i, c in enumerate(cards):
        if c.id == card_id:
            return cards.pop(i)
    return None


def draw_center(state: GameState, count: int) -> List[CenterCard]:
    drawn = state.center.cards[:count]
    del state.center.cards[:count]
    return drawn


def center_to_bottom(state: GameState, cards: Sequence[CenterCard]) -> None:
    state.center.cards.extend(cards)
