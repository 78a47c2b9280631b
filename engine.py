"""
Table and phase state machine.

Every function takes the room's GameState, mutates it in place and returns
True when something changed. Input that fails a precondition (wrong phase,
unknown player, card not in hand...) leaves the state untouched and returns
False. Callers must serialize calls for one room.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from catalog import Catalog
from deck import deal_to_hand_size, discard_ingredient, setup_decks
from models import (
    FAVORABLE,
    SUBMISSION_KINDS,
    ForcedPlayNotice,
    GameState,
    HazelGuess,
    LogType,
    Phase,
    PlayedCard,
    Player,
    Rune,
    Winner,
    YewVote,
)
from pending import GUESS, VOTE, resolve_pending
from resolution import GATED, begin_resolution, finish_resolution

END_THRESHOLD = 5
MAX_NAME = 24
MAX_RUNE = 200


def configure(state: GameState, cfg: Dict[str, Any]) -> bool:
    if state.phase != Phase.LOBBY:
        return False
    state.config.configure(cfg)
    return True


def add_player(state: GameState, player_id: str, name: str) -> bool:
    name = (name or "").strip()[:MAX_NAME]
    existing = state.player(player_id)
    if existing:
        existing.connected = True
        if name:
            existing.name = name
        return True
    if state.phase != Phase.LOBBY or len(state.players) >= state.room.max_players:
        return False
    state.players.append(Player(id=player_id, name=name or f"Player-{player_id[:6]}"))
    return True


def set_connected(state: GameState, player_id: str, connected: bool, now: float) -> bool:
    p = state.player(player_id)
    if not p or p.connected == connected:
        return False
    p.connected = connected
    if not connected:
        _maybe_resolve(state, now)
    return True


def is_host(state: GameState, player_id: str) -> bool:
    return bool(state.players) and state.players[0].id == player_id


def set_ready(state: GameState, player_id: str, ready: bool) -> bool:
    p = state.player(player_id)
    if not p:
        return False
    p.ready = ready
    return True


def start_game(state: GameState, catalog: Catalog, now: float) -> bool:
    if state.phase != Phase.LOBBY or not state.players:
        return False
    setup_decks(state, catalog)
    state.table = []
    state.claims = {}
    state.pending.clear()
    state.runes = []
    state.winner = None
    state.primary, state.secondary = [], []
    state.submissions = {}
    state.poisoned_ingredient = None
    state.poison_next_round = []
    for p in state.players:
        p.ended_discussion = False
        p.poisoned = False
    state.round = 1
    state.phase = Phase.NIGHT
    state.expires_at = now + state.config.night_seconds
    state.add_log(LogType.INFO, "The game begins. Roles have been dealt.")
    return True


# ---------------------------------------------------------------------------
# NIGHT
# ---------------------------------------------------------------------------

def play_card(state: GameState, player_id: str, card_id: str, now: float) -> bool:
    if state.phase != Phase.NIGHT:
        return False
    p = state.player(player_id)
    if not p or not p.connected or p.poisoned or state.table_entry(player_id):
        return False
    hand = state.hands.get(player_id) or []
    idx = next((i for i, c in enumerate(hand) if c.id == card_id), -1)
    if idx < 0:
        return False
    state.table.append(PlayedCard(player_id=player_id, card=hand.pop(idx)))
    _maybe_resolve(state, now)
    return True


def unplay_card(state: GameState, player_id: str) -> bool:
    if state.phase != Phase.NIGHT:
        return False
    entry = state.table_entry(player_id)
    if entry is None:
        return False
    state.table.remove(entry)
    state.hands.setdefault(player_id, []).append(entry.card)
    return True


def force_night_end(state: GameState, now: float) -> bool:
    if state.phase != Phase.NIGHT:
        return False
    for p in state.active_players():
        hand = state.hands.get(p.id) or []
        if state.table_entry(p.id) or not hand:
            continue
        card = hand.pop(state.rng.randrange(len(hand)))
        state.table.append(PlayedCard(player_id=p.id, card=card))
        state.pending.add(ForcedPlayNotice(player_id=p.id, card_id=card.id, card_name=card.name))
        state.add_log(LogType.INFO, f"{p.name} ran out of time; a random ingredient was played.")
    _run_resolution(state, now)
    return True


def _maybe_resolve(state: GameState, now: float) -> None:
    if state.phase != Phase.NIGHT:
        return
    active = state.active_players()
    played = {t.player_id for t in state.table}
    if active and all(p.id in played for p in active):
        _run_resolution(state, now)


def _run_resolution(state: GameState, now: float) -> None:
    if begin_resolution(state):
        enter_day(state, now)
    else:
        state.expires_at = now + state.config.night_seconds


# ---------------------------------------------------------------------------
# DAY
# ---------------------------------------------------------------------------

def enter_day(state: GameState, now: float) -> None:
    for t in state.table:
        discard_ingredient(state, t.card)
    deal_to_hand_size(state)
    if check_win_condition(state):
        end_game(state, evaluate_winner(state))
        return
    state.phase = Phase.DAY
    state.expires_at = now + state.config.day_seconds


def claim_card(state: GameState, player_id: str, card_id: str) -> bool:
    if state.phase != Phase.DAY or not state.player(player_id):
        return False
    if not any(t.revealed and t.card.id == card_id for t in state.table):
        return False
    claimants = state.claims.setdefault(card_id, [])
    if player_id in claimants:
        claimants.remove(player_id)
    else:
        claimants.append(player_id)
    if not claimants:
        del state.claims[card_id]
    return True


def resolution_action(state: GameState, player_id: str, choice: str, now: float) -> bool:
    if state.phase not in (Phase.DAY, Phase.RESOLUTION):
        return False
    if not resolve_pending(state, player_id, choice):
        return False
    _after_decision(state, now)
    return True


def yew_target(state: GameState, player_id: str, ingredient: str, now: float) -> bool:
    if state.phase != Phase.RESOLUTION or not isinstance(state.pending.get(player_id), YewVote):
        return False
    if not resolve_pending(state, player_id, VOTE, ingredient):
        return False
    _after_decision(state, now)
    return True


def hazel_guess(state: GameState, player_id: str, ingredient: str, now: float) -> bool:
    if state.phase != Phase.RESOLUTION or not isinstance(state.pending.get(player_id), HazelGuess):
        return False
    if not resolve_pending(state, player_id, GUESS, ingredient):
        return False
    _after_decision(state, now)
    return True


def _after_decision(state: GameState, now: float) -> None:
    if state.phase == Phase.RESOLUTION:
        waiting_on_input = state.primary and state.primary[0] in GATED
        if waiting_on_input and not state.pending.submissions_outstanding():
            finish_resolution(state)
            enter_day(state, now)
    elif state.phase == Phase.DAY:
        _maybe_end_day(state, now)


def end_discussion(state: GameState, player_id: str, now: float) -> bool:
    if state.phase != Phase.DAY:
        return False
    p = state.player(player_id)
    if not p or p.ended_discussion:
        return False
    p.ended_discussion = True
    _maybe_end_day(state, now)
    return True


def _maybe_end_day(state: GameState, now: float) -> None:
    if all(p.ended_discussion for p in state.players) and len(state.pending) == 0:
        next_round(state, now)


def next_round(state: GameState, now: float) -> bool:
    if state.phase not in (Phase.DAY, Phase.RESOLUTION):
        return False
    state.table = []
    state.claims = {}
    state.pending.clear()
    state.primary, state.secondary = [], []
    state.submissions = {}
    for p in state.players:
        p.ended_discussion = False
        p.poisoned = p.id in state.poison_next_round
    state.poison_next_round = []
    deal_to_hand_size(state)
    state.round += 1
    state.phase = Phase.NIGHT
    state.expires_at = now + state.config.night_seconds
    state.add_log(LogType.INFO, f"Round {state.round} begins.")
    return True


# ---------------------------------------------------------------------------
# Timer
# ---------------------------------------------------------------------------

def tick(state: GameState, now: float) -> bool:
    """Body of the timer poller; never call it concurrently with an intent for the same room."""
    if state.expires_at is None or now <= state.expires_at:
        return False
    if state.phase == Phase.NIGHT:
        return force_night_end(state, now)
    if state.phase == Phase.RESOLUTION:
        if state.pending.submissions_outstanding():
            # missing votes and guesses count as abstentions
            state.pending.drop(SUBMISSION_KINDS)
            state.add_log(LogType.INFO, "Time is up; the remaining choices were abstentions.")
            finish_resolution(state)
            enter_day(state, now)
            return True
        if len(state.pending) == 0:
            return next_round(state, now)
        return False
    if state.phase == Phase.DAY:
        return next_round(state, now)
    return False


# ---------------------------------------------------------------------------
# Win condition
# ---------------------------------------------------------------------------

def check_win_condition(state: GameState) -> bool:
    return len(state.center.revealed) + len(state.center.cards) <= END_THRESHOLD


def evaluate_winner(state: GameState) -> Winner:
    remaining = state.center.cards + state.center.revealed
    good = sum(1 for c in remaining if c.type == FAVORABLE)
    evil = len(remaining) - good
    if good > evil:
        return Winner.GOOD
    if evil > good:
        return Winner.EVIL
    return Winner.TIE


def end_game(state: GameState, winner: Winner) -> None:
    state.phase = Phase.ENDED
    state.winner = winner
    state.expires_at = None
    if winner == Winner.TIE:
        state.add_log(LogType.INFO, "The game is over: it is a tie.")
    else:
        state.add_log(LogType.INFO, f"The game is over: the {winner.value} team wins.")


# ---------------------------------------------------------------------------
# Runes
# ---------------------------------------------------------------------------

def send_rune(state: GameState, from_id: str, to_id: str, message: str) -> Optional[Rune]:
    if state.phase in (Phase.LOBBY, Phase.ENDED):
        return None
    sender, recipient = state.player(from_id), state.player(to_id)
    message = (message or "").strip()
    if not sender or not recipient or from_id == to_id:
        return None
    if not message or len(message) > MAX_RUNE:
        return None
    rune = Rune(from_id=from_id, to_id=to_id, message=message, round=state.round)
    state.runes.append(rune)
    state.add_log(LogType.INFO, f"{sender.name} sent a rune to {recipient.name}.")
    return rune
