"""
Ingredient resolution.

Once every active player has a card on the table the cards are revealed and
counted. The most played ingredient is the primary effect, the runner-up is
the secondary effect:

- a tie for the top count leaves no primary and demotes every tied
  ingredient to secondary,
- a tie for the second count leaves no secondary.

Secondary effects run before the primary, so a Wolfbane Root secondary can
block it. Yew Berries and Hazel of Wisdom need a secret submission from each
contributor first; while those are outstanding the round waits in the
RESOLUTION phase.
"""
from __future__ import annotations

from collections import Counter
from typing import Callable, Dict, List, Tuple

from catalog import (
    BRIGIDS_BLESSING,
    CAILLEACHS_GAZE,
    CEOL,
    FAERIE_THISTLE,
    HAZEL_OF_WISDOM,
    WOLFBANE_ROOT,
    YEW_BERRIES,
    ingredient_label,
)
from deck import center_to_bottom, draw_center, shuffle
from models import (
    FAVORABLE,
    UNFAVORABLE,
    CailleachChoice,
    CeolAck,
    CeolGlimpse,
    ForcedDiscard,
    GameState,
    HazelGuess,
    HazelHint,
    Location,
    LogType,
    Phase,
    PlayedCard,
    TopCardView,
    YewPeek,
    YewVote,
)

BLOCKER = WOLFBANE_ROOT
GATED = {YEW_BERRIES: YewVote, HAZEL_OF_WISDOM: HazelGuess}

Effect = Callable[[GameState, List[str]], None]


def count_ingredients(table: List[PlayedCard]) -> Dict[str, List[str]]:
    counts: Dict[str, List[str]] = {}
    for t in table:
        counts.setdefault(t.card.name, []).append(t.player_id)
    return counts


def determine_tiers(counts: Dict[str, List[str]]) -> Tuple[List[str], List[str]]:
    if not counts:
        return [], []
    sizes = {name: len(pids) for name, pids in counts.items()}
    top = max(sizes.values())
    leaders = [name for name, c in sizes.items() if c == top]
    if len(leaders) > 1:
        return [], leaders

    rest = {name: c for name, c in sizes.items() if c < top}
    if not rest:
        return leaders, []
    second = max(rest.values())
    runners = [name for name, c in rest.items() if c == second]
    if len(runners) > 1:
        return leaders, []
    return leaders, runners


def _name(state: GameState, player_id: str) -> str:
    p = state.player(player_id)
    return p.name if p else player_id


# ---------------------------------------------------------------------------
# Brigid's Blessing
# ---------------------------------------------------------------------------

def _reveal_pair(state: GameState, tier: LogType) -> None:
    cards = draw_center(state, 2)
    if not cards:
        state.add_log(tier, "The center deck is empty, nothing to reveal.", BRIGIDS_BLESSING)
        return
    if len(cards) == 2 and all(c.type == FAVORABLE for c in cards):
        state.center.revealed.append(cards[0])
        center_to_bottom(state, cards[1:])
        state.learn(None, cards[0], Location.REVEALED)
        state.learn(None, cards[1], Location.DECK)
        msg = "Two Milk cards! One is placed face up, the other returns to the bottom of the deck."
    else:
        center_to_bottom(state, cards)
        for c in cards:
            state.learn(None, c, Location.DECK)
        msg = "The revealed cards return to the bottom of the deck."
    state.add_log(tier, msg, BRIGIDS_BLESSING, cards)


def brigid_primary(state: GameState, contributors: List[str]) -> None:
    _reveal_pair(state, LogType.PRIMARY)


def brigid_secondary(state: GameState, contributors: List[str]) -> None:
    if CEOL in state.primary:
        state.add_log(LogType.SECONDARY, f"No repeat while {ingredient_label(CEOL)} is primary.", BRIGIDS_BLESSING)
        return
    _reveal_pair(state, LogType.SECONDARY)


# ---------------------------------------------------------------------------
# Cailleach's Gaze
# ---------------------------------------------------------------------------

def cailleach_primary(state: GameState, contributors: List[str]) -> None:
    for pid in contributors:
        if not state.center.cards:
            break
        card = state.rng.choice(state.center.cards)
        state.pending.add(CailleachChoice(player_id=pid, card_id=card.id, card_type=card.type))
        state.learn(pid, card, Location.DECK)
    state.add_log(LogType.PRIMARY, f"{len(contributors)} player(s) secretly look at a card from the center deck.",
                  CAILLEACHS_GAZE)


def cailleach_secondary(state: GameState, contributors: List[str]) -> None:
    if not state.center.cards:
        state.add_log(LogType.SECONDARY, "The center deck is empty.", CAILLEACHS_GAZE)
        return
    top = state.center.cards[0]
    for pid in contributors:
        state.pending.add(TopCardView(player_id=pid, card_id=top.id, card_type=top.type))
        state.learn(pid, top, Location.DECK)
    state.add_log(LogType.SECONDARY, f"{len(contributors)} player(s) look at the top of the center deck.",
                  CAILLEACHS_GAZE)


# ---------------------------------------------------------------------------
# Ceol of the Midnight Cairn
# ---------------------------------------------------------------------------

def ceol_primary(state: GameState, contributors: List[str]) -> None:
    holders = [state.player(pid) for pid in contributors]
    holders = [p for p in holders if p is not None and p.role_id]
    pool = [p.role_id for p in holders]
    if state.hero_deck:
        pool.append(state.hero_deck.pop(state.rng.randrange(len(state.hero_deck))))
    shuffle(pool, state.rng)

    for p, role_id in zip(holders, pool):
        p.role_id = role_id
        state.pending.add(CeolAck(player_id=p.id, new_role_id=role_id))
    state.hero_deck.extend(pool[len(holders):])
    state.add_log(LogType.PRIMARY, f"Roles are swapped among {len(holders)} player(s).", CEOL)


def ceol_secondary(state: GameState, contributors: List[str]) -> None:
    if len(contributors) < 2:
        state.add_log(LogType.SECONDARY, "Only one player heard the Ceol; nothing happens.", CEOL)
        return
    for pid in contributors:
        other = state.player(state.rng.choice([c for c in contributors if c != pid]))
        if other is None or not other.role_id:
            continue
        state.pending.add(CeolGlimpse(player_id=pid, role_id=other.role_id))
    state.add_log(LogType.SECONDARY, "Each player who played it glimpses another one's role.", CEOL)


# ---------------------------------------------------------------------------
# Faerie Thistle
# ---------------------------------------------------------------------------

def thistle_primary(state: GameState, contributors: List[str]) -> None:
    cards = draw_center(state, 2)
    threshold = (len(state.players) - 1) // 2
    many = len(contributors) > threshold
    lost = FAVORABLE if many else UNFAVORABLE

    for c in cards:
        if c.type == lost:
            state.center.discarded.append(c)
            state.learn(None, c, Location.DISCARD)
        else:
            state.center.cards.append(c)
            state.learn(None, c, Location.DECK)
    shuffle(state.center.cards, state.rng)

    verdict = "more" if many else "no more"
    state.add_log(
        LogType.PRIMARY,
        f"{len(contributors)} played it ({verdict} than {threshold}): {lost.value} is discarded, "
        f"the rest is shuffled back.",
        FAERIE_THISTLE,
        cards,
    )


def thistle_secondary(state: GameState, contributors: List[str]) -> None:
    cards = draw_center(state, 1)
    state.center.discarded.extend(cards)
    if cards:
        state.add_log(LogType.SECONDARY, "The top card of the center deck is discarded unseen.", FAERIE_THISTLE)
    else:
        state.add_log(LogType.SECONDARY, "The center deck is empty.", FAERIE_THISTLE)


# ---------------------------------------------------------------------------
# Wolfbane Root
# ---------------------------------------------------------------------------

def wolfbane_primary(state: GameState, contributors: List[str]) -> None:
    for p in state.players:
        state.pending.add(ForcedDiscard(player_id=p.id))
    state.add_log(LogType.PRIMARY, "Every player must discard a random ingredient.", WOLFBANE_ROOT)


def wolfbane_secondary(state: GameState, contributors: List[str]) -> None:
    if state.primary:
        msg = f"Blocks {ingredient_label(state.primary[0])}."
    else:
        msg = "There is no primary effect to block."
    state.add_log(LogType.SECONDARY, msg, WOLFBANE_ROOT)


# ---------------------------------------------------------------------------
# Yew Berries
# ---------------------------------------------------------------------------

def yew_primary(state: GameState, contributors: List[str]) -> None:
    tally: Dict[str, int] = {}
    for pid in contributors:
        target = state.submissions.get(pid)
        if target:
            tally[target] = tally.get(target, 0) + 1

    if tally:
        maxv = max(tally.values())
        target = state.rng.choice(sorted(t for t, c in tally.items() if c == maxv))
    elif state.ingredient_names:
        target = state.rng.choice(state.ingredient_names)
    else:
        state.add_log(LogType.PRIMARY, "Nothing to poison.", YEW_BERRIES)
        return

    state.poisoned_ingredient = target
    top = state.center.cards[0] if state.center.cards else None
    for pid in contributors:
        if state.submissions.get(pid) == target and top is not None:
            state.pending.add(YewPeek(player_id=pid, target=target, card_id=top.id, card_type=top.type))
            state.learn(pid, top, Location.DECK)
    state.add_log(LogType.PRIMARY, "An ingredient is poisoned for the next round.", YEW_BERRIES)


def yew_secondary(state: GameState, contributors: List[str]) -> None:
    state.add_log(LogType.SECONDARY, "Yew Berries have no secondary effect.", YEW_BERRIES)


# ---------------------------------------------------------------------------
# Hazel of Wisdom
# ---------------------------------------------------------------------------

def most_common_in_hands(state: GameState) -> List[str]:
    counts = Counter(c.name for hand in state.hands.values() for c in hand)
    if not counts:
        return []
    best = max(counts.values())
    return sorted(name for name, c in counts.items() if c == best)


def hazel_primary(state: GameState, contributors: List[str]) -> None:
    common = most_common_in_hands(state)
    right = 0
    for pid in contributors:
        if state.submissions.get(pid) not in common:
            continue
        right += 1
        if state.center.cards:
            card = state.rng.choice(state.center.cards)
            state.pending.add(CailleachChoice(player_id=pid, card_id=card.id, card_type=card.type))
            state.learn(pid, card, Location.DECK)
    state.add_log(LogType.PRIMARY, f"{right} of {len(contributors)} player(s) guessed the most common ingredient.",
                  HAZEL_OF_WISDOM)


def hazel_secondary(state: GameState, contributors: List[str]) -> None:
    common = most_common_in_hands(state)
    for pid in contributors:
        state.pending.add(HazelHint(player_id=pid, ingredients=common))
    state.add_log(LogType.SECONDARY, "The hazel whispers which ingredient is most common.", HAZEL_OF_WISDOM)


EFFECTS: Dict[str, Tuple[Effect, Effect]] = {
    BRIGIDS_BLESSING: (brigid_primary, brigid_secondary),
    CAILLEACHS_GAZE: (cailleach_primary, cailleach_secondary),
    CEOL: (ceol_primary, ceol_secondary),
    FAERIE_THISTLE: (thistle_primary, thistle_secondary),
    WOLFBANE_ROOT: (wolfbane_primary, wolfbane_secondary),
    YEW_BERRIES: (yew_primary, yew_secondary),
    HAZEL_OF_WISDOM: (hazel_primary, hazel_secondary),
}


# ---------------------------------------------------------------------------
# Round flow
# ---------------------------------------------------------------------------

def _apply_poison(state: GameState, counts: Dict[str, List[str]]) -> None:
    target = state.poisoned_ingredient
    if not target:
        return
    state.poisoned_ingredient = None
    victims = counts.get(target, [])
    state.poison_next_round = list(victims)
    if victims:
        names = ", ".join(_name(state, pid) for pid in victims)
        state.add_log(LogType.INFO, f"The yew poison takes hold of {names}.", YEW_BERRIES)


def begin_resolution(state: GameState) -> bool:
    """Reveal and rank the table. Returns True when the effects have all been applied."""
    state.phase = Phase.RESOLUTION
    for t in state.table:
        t.revealed = True

    counts = count_ingredients(state.table)
    state.primary, state.secondary = determine_tiers(counts)
    state.submissions = {}
    _apply_poison(state, counts)

    if state.primary:
        summary = f"Primary: {ingredient_label(state.primary[0])}."
    else:
        summary = "No primary ingredient."
    if state.secondary:
        summary += " Secondary: " + ", ".join(ingredient_label(n) for n in state.secondary) + "."
    state.add_log(LogType.INFO, summary)

    gated = state.primary[0] if state.primary else None
    if gated in GATED and BLOCKER not in state.secondary:
        for pid in counts[gated]:
            state.pending.add(GATED[gated](player_id=pid))
        return False

    finish_resolution(state)
    return True


def finish_resolution(state: GameState) -> None:
    counts = count_ingredients(state.table)
    for name in state.secondary:
        effects = EFFECTS.get(name)
        if effects is None:
            state.add_log(LogType.SECONDARY, f"{ingredient_label(name)} has no known effect.", name)
            continue
        effects[1](state, counts.get(name, []))

    for name in state.primary:
        if BLOCKER in state.secondary:
            state.add_log(LogType.PRIMARY, f"{ingredient_label(name)} was blocked by {ingredient_label(BLOCKER)}.",
                          name)
            continue
        effects = EFFECTS.get(name)
        if effects is None:
            state.add_log(LogType.PRIMARY, f"{ingredient_label(name)} has no known effect.", name)
            continue
        effects[0](state, counts.get(name, []))

    state.submissions = {}
