from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class Phase(str, Enum):
    LOBBY = "LOBBY"
    NIGHT = "NIGHT"
    RESOLUTION = "RESOLUTION"
    DAY = "DAY"
    ENDED = "ENDED"


class Team(str, Enum):
    GOOD = "GOOD"
    EVIL = "EVIL"


class CenterType(str, Enum):
    MILK = "MILK"
    BLOOD = "BLOOD"


class Winner(str, Enum):
    GOOD = "GOOD"
    EVIL = "EVIL"
    TIE = "TIE"


class LogType(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    INFO = "info"


class Location(str, Enum):
    DECK = "deck"
    DISCARD = "discard"
    REVEALED = "revealed"


FAVORABLE = CenterType.MILK
UNFAVORABLE = CenterType.BLOOD


@dataclass
class Role:
    id: str
    name: str
    team: Team
    image: Optional[str] = None


@dataclass
class IngredientCard:
    id: str
    name: str
    image: Optional[str] = None


@dataclass
class CenterCard:
    id: str
    type: CenterType


@dataclass
class Player:
    id: str
    name: str
    role_id: Optional[str] = None
    ready: bool = False
    connected: bool = True
    ended_discussion: bool = False
    poisoned: bool = False


@dataclass
class Room:
    code: str
    created_at: float = field(default_factory=time.time)
    max_players: int = 10


@dataclass
class GameConfig:
    night_seconds: int = 30
    day_seconds: int = 15
    hand_size: int = 3

    def configure(self, cfg: Dict[str, Any]) -> None:
        if "night_seconds" in cfg:
            self.night_seconds = max(10, min(300, int(cfg["night_seconds"])))
        if "day_seconds" in cfg:
            self.day_seconds = max(10, min(600, int(cfg["day_seconds"])))
        if "hand_size" in cfg:
            self.hand_size = max(1, min(6, int(cfg["hand_size"])))


@dataclass
class Deck:
    draw_pile: List[IngredientCard] = field(default_factory=list)
    discard_pile: List[IngredientCard] = field(default_factory=list)


@dataclass
class CenterDeck:
    # cards[0] is the top of the pile
    cards: List[CenterCard] = field(default_factory=list)
    revealed: List[CenterCard] = field(default_factory=list)
    discarded: List[CenterCard] = field(default_factory=list)

    def find(self, card_id: str) -> Optional[CenterCard]:
        for c in self.cards:
            if c.id == card_id:
                return c
        return None


@dataclass
class PlayedCard:
    player_id: str
    card: IngredientCard
    revealed: bool = False


@dataclass
class LogEntry:
    type: LogType
    message: str
    round: int
    ingredient: Optional[str] = None
    cards: List[CenterCard] = field(default_factory=list)


@dataclass
class KnowledgeEntry:
    """A center card whose type became known to one player (or everyone when player_id is None)."""
    player_id: Optional[str]
    card_id: str
    card_type: CenterType
    location: Location
    round: int


@dataclass
class Rune:
    from_id: str
    to_id: str
    message: str
    round: int
    sent_at: float = field(default_factory=time.time)


# ---------------------------------------------------------------------------
# Pending decisions. One dataclass per kind, only the fields that kind needs.
# ---------------------------------------------------------------------------

@dataclass
class CailleachChoice:
    player_id: str
    card_id: str
    card_type: CenterType
    kind: str = "cailleach_primary"


@dataclass
class TopCardView:
    player_id: str
    card_id: str
    card_type: CenterType
    kind: str = "cailleach_secondary"


@dataclass
class CeolAck:
    player_id: str
    new_role_id: str
    kind: str = "ceol_primary"


@dataclass
class CeolGlimpse:
    player_id: str
    role_id: str
    kind: str = "ceol_secondary"


@dataclass
class ForcedDiscard:
    player_id: str
    kind: str = "wolfbane_primary"


@dataclass
class ForcedPlayNotice:
    player_id: str
    card_id: str
    card_name: str
    kind: str = "forced_play"


@dataclass
class YewVote:
    player_id: str
    kind: str = "yew_vote"


@dataclass
class YewPeek:
    player_id: str
    target: str
    card_id: str
    card_type: CenterType
    kind: str = "yew_peek"


@dataclass
class HazelGuess:
    player_id: str
    kind: str = "hazel_guess"


@dataclass
class HazelHint:
    player_id: str
    ingredients: List[str]
    kind: str = "hazel_secondary"


PendingAction = Union[
    CailleachChoice,
    TopCardView,
    CeolAck,
    CeolGlimpse,
    ForcedDiscard,
    ForcedPlayNotice,
    YewVote,
    YewPeek,
    HazelGuess,
    HazelHint,
]

# Kinds that carry a secret submission the primary effect is waiting on.
SUBMISSION_KINDS = (YewVote, HazelGuess)


class PendingQueue:
    """At most one active decision per player; later ones wait in arrival order."""

    def __init__(self) -> None:
        self.active: Dict[str, PendingAction] = {}
        self.waiting: List[PendingAction] = []

    def __len__(self) -> int:
        return len(self.active) + len(self.waiting)

    def __iter__(self):
        return iter(list(self.active.values()) + list(self.waiting))

    def add(self, action: PendingAction) -> None:
        if action.player_id in self.active:
            self.waiting.append(action)
        else:
            self.active[action.player_id] = action

    def get(self, player_id: str) -> Optional[PendingAction]:
        return self.active.get(player_id)

    def has(self, player_id: str) -> bool:
        return player_id in self.active

    def pop(self, player_id: str) -> Optional[PendingAction]:
        action = self.active.pop(player_id, None)
        if action is None:
            return None
        for i, nxt in enumerate(self.waiting):
            if nxt.player_id == player_id:
                self.active[player_id] = self.waiting.pop(i)
                break
        return action

    def submissions_outstanding(self) -> bool:
        return any(isinstance(a, SUBMISSION_KINDS) for a in self)

    def drop(self, kinds: Tuple[type, ...]) -> None:
        """Remove every decision of the given kinds, promoting what waits behind them."""
        self.waiting = [a for a in self.waiting if not isinstance(a, kinds)]
        for pid, action in list(self.active.items()):
            if isinstance(action, kinds):
                self.pop(pid)

    def clear(self) -> None:
        self.active.clear()
        self.waiting.clear()


@dataclass
class GameState:
    room: Room
    config: GameConfig = field(default_factory=GameConfig)
    phase: Phase = Phase.LOBBY
    round: int = 0
    players: List[Player] = field(default_factory=list)
    spectators: List[str] = field(default_factory=list)
    roles: Dict[str, Role] = field(default_factory=dict)
    hero_deck: List[str] = field(default_factory=list)
    ingredient_names: List[str] = field(default_factory=list)
    deck: Deck = field(default_factory=Deck)
    center: CenterDeck = field(default_factory=CenterDeck)
    hands: Dict[str, List[IngredientCard]] = field(default_factory=dict)
    table: List[PlayedCard] = field(default_factory=list)
    claims: Dict[str, List[str]] = field(default_factory=dict)
    pending: PendingQueue = field(default_factory=PendingQueue)
    log: List[LogEntry] = field(default_factory=list)
    knowledge: List[KnowledgeEntry] = field(default_factory=list)
    runes: List[Rune] = field(default_factory=list)
    expires_at: Optional[float] = None
    winner: Optional[Winner] = None
    # round tiers held while a gated primary waits for submissions
    primary: List[str] = field(default_factory=list)
    secondary: List[str] = field(default_factory=list)
    submissions: Dict[str, str] = field(default_factory=dict)
    poisoned_ingredient: Optional[str] = None
    poison_next_round: List[str] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def player(self, player_id: Optional[str]) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def active_players(self) -> List[Player]:
        return [p for p in self.players if p.connected and not p.poisoned]

    def table_entry(self, player_id: str) -> Optional[PlayedCard]:
        for t in self.table:
            if t.player_id == player_id:
                return t
        return None

    def add_log(
        self,
        type: LogType,
        message: str,
        ingredient: Optional[str] = None,
        cards: Optional[List[CenterCard]] = None,
    ) -> None:
        self.log.append(LogEntry(type=type, message=message, round=self.round,
                                 ingredient=ingredient, cards=list(cards or [])))

    def learn(self, player_id: Optional[str], card: CenterCard, location: Location) -> None:
        self.knowledge.append(KnowledgeEntry(player_id=player_id, card_id=card.id, card_type=card.type,
                                             location=location, round=self.round))
