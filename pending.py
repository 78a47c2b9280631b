"""Resolution of per-player pending decisions."""
from __future__ import annotations

from typing import Callable, Dict, Optional

from deck import center_to_bottom, discard_ingredient, take_center
from models import (
    CailleachChoice,
    CeolAck,
    CeolGlimpse,
    ForcedDiscard,
    ForcedPlayNotice,
    GameState,
    HazelGuess,
    HazelHint,
    Location,
    LogType,
    PendingAction,
    TopCardView,
    YewPeek,
    YewVote,
)

KEEP = "keep"
DISCARD = "discard"
CONFIRM = "confirm"
VOTE = "vote"
GUESS = "guess"


def _player_name(state: GameState, player_id: str) -> str:
    p = state.player(player_id)
    return p.name if p else player_id


def _resolve_cailleach(state: GameState, action: CailleachChoice, choice: str, value: Optional[str]) -> bool:
    if choice not in (KEEP, DISCARD):
        return False
    card = take_center(state, action.card_id)
    if card is None:
        # the card left the deck through another effect; nothing to move
        return True
    if choice == KEEP:
        center_to_bottom(state, [card])
        state.learn(action.player_id, card, Location.DECK)
    else:
        state.center.discarded.append(card)
        state.learn(action.player_id, card, Location.DISCARD)
        state.add_log(LogType.INFO, f"{_player_name(state, action.player_id)} discarded a card from the center deck.")
    return True


def _resolve_forced_discard(state: GameState, action: ForcedDiscard, choice: str, value: Optional[str]) -> bool:
    if choice != CONFIRM:
        return False
    hand = state.hands.get(action.player_id) or []
    if hand:
        card = hand.pop(state.rng.randrange(len(hand)))
        discard_ingredient(state, card)
        state.add_log(LogType.INFO, f"{_player_name(state, action.player_id)} discarded a random ingredient.")
    return True


def _acknowledge(state: GameState, action: PendingAction, choice: str, value: Optional[str]) -> bool:
    return choice == CONFIRM


def _resolve_yew_vote(state: GameState, action: YewVote, choice: str, value: Optional[str]) -> bool:
    if choice != VOTE or value not in state.ingredient_names:
        return False
    state.submissions[action.player_id] = value
    return True


def _resolve_hazel_guess(state: GameState, action: HazelGuess, choice: str, value: Optional[str]) -> bool:
    if choice != GUESS or value not in state.ingredient_names:
        return False
    state.submissions[action.player_id] = value
    return True


_HANDLERS: Dict[type, Callable[[GameState, PendingAction, str, Optional[str]], bool]] = {
    CailleachChoice: _resolve_cailleach,
    TopCardView: _acknowledge,
    CeolAck: _acknowledge,
    CeolGlimpse: _acknowledge,
    ForcedDiscard: _resolve_forced_discard,
    ForcedPlayNotice: _acknowledge,
    YewVote: _resolve_yew_vote,
    YewPeek: _acknowledge,
    HazelGuess: _resolve_hazel_guess,
    HazelHint: _acknowledge,
}


def resolve_pending(state: GameState, player_id: str, choice: str, value: Optional[str] = None) -> bool:
    """Apply the player's choice to their active decision and drop it.

    Returns False, leaving the state untouched, when the player has no active
    decision or the choice does not fit its kind.
    """
    action = state.pending.get(player_id)
    if action is None:
        return False
    handler = _HANDLERS[type(action)]
    if not handler(state, action, choice, value):
        return False
    state.pending.pop(player_id)
    return True
