from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from models import CenterCard, GameState, KnowledgeEntry, LogEntry, PendingAction, Phase, Role

HIDDEN_CARD = {"id": "hidden", "name": "Hidden", "image": None}


def _role(role: Optional[Role]) -> Optional[Dict[str, Any]]:
    if role is None:
        return None
    return {"id": role.id, "name": role.name, "team": role.team.value, "image": role.image}


def _center(card: CenterCard) -> Dict[str, Any]:
    return {"id": card.id, "type": card.type.value}


def _log_entry(entry: LogEntry) -> Dict[str, Any]:
    return {
        "type": entry.type.value,
        "ingredient": entry.ingredient,
        "message": entry.message,
        "round": entry.round,
        "cards": [_center(c) for c in entry.cards],
    }


def _pending(state: GameState, action: Optional[PendingAction]) -> Optional[Dict[str, Any]]:
    if action is None:
        return None
    data = {k: (v.value if hasattr(v, "value") else v) for k, v in asdict(action).items()}
    # resolve role ids so the owner can see what they received
    for key in ("new_role_id", "role_id"):
        if key in data:
            data["role"] = _role(state.roles.get(data[key]))
    return data


def _knowledge(entry: KnowledgeEntry) -> Dict[str, Any]:
    return {
        "public": entry.player_id is None,
        "card_id": entry.card_id,
        "type": entry.card_type.value,
        "location": entry.location.value,
        "round": entry.round,
    }


def shape_state_for(state: GameState, viewer_id: Optional[str]) -> Dict[str, Any]:
    """What one player (or a spectator, viewer_id=None) is allowed to see."""
    ended = state.phase == Phase.ENDED
    viewer = state.player(viewer_id)

    players: List[Dict[str, Any]] = []
    for p in state.players:
        entry = {
            "id": p.id,
            "name": p.name,
            "ready": p.ready,
            "connected": p.connected,
            "ended_discussion": p.ended_discussion,
            "poisoned": p.poisoned,
        }
        if ended:
            entry["role"] = _role(state.roles.get(p.role_id)) if p.role_id else None
        players.append(entry)

    hands = {}
    for pid, hand in state.hands.items():
        if viewer is not None and pid == viewer.id:
            hands[pid] = [{"id": c.id, "name": c.name, "image": c.image} for c in hand]
        else:
            hands[pid] = [dict(HIDDEN_CARD) for _ in hand]

    table = []
    for t in state.table:
        item: Dict[str, Any] = {"player_id": t.player_id, "revealed": t.revealed}
        if t.revealed:
            item.update({"card_id": t.card.id, "name": t.card.name, "image": t.card.image})
        table.append(item)

    center = state.center
    if ended:
        center_view = {"cards": [_center(c) for c in center.cards]}
    else:
        center_view = {"cards": [{"id": "hidden"} for _ in center.cards]}
    center_view["revealed"] = [_center(c) for c in center.revealed]
    center_view["discarded_count"] = len(center.discarded)

    shaped: Dict[str, Any] = {
        "room": {"code": state.room.code, "created_at": state.room.created_at,
                 "max_players": state.room.max_players},
        "config": asdict(state.config),
        "phase": state.phase.value,
        "round": state.round,
        "expires_at": state.expires_at,
        "winner": state.winner.value if state.winner else None,
        "players": players,
        "hands": hands,
        "table": table,
        "claims": {cid: list(pids) for cid, pids in state.claims.items()},
        "center": center_view,
        "deck": {"draw_count": len(state.deck.draw_pile), "discard_count": len(state.deck.discard_pile)},
        "primary": list(state.primary),
        "secondary": list(state.secondary),
        "log": [_log_entry(e) for e in state.log],
        "pending_count": len(state.pending),
        "me": None,
        "my_pending": None,
        "knowledge": [_knowledge(k) for k in state.knowledge if k.player_id is None],
        "runes": [],
    }

    if viewer is not None:
        shaped["me"] = {"id": viewer.id, "role": _role(state.roles.get(viewer.role_id)) if viewer.role_id else None}
        shaped["my_pending"] = _pending(state, state.pending.get(viewer.id))
        shaped["knowledge"] = [_knowledge(k) for k in state.knowledge if k.player_id in (None, viewer.id)]
        shaped["runes"] = [
            {"from_id": r.from_id, "to_id": r.to_id, "message": r.message, "round": r.round}
            for r in state.runes
            if viewer.id in (r.from_id, r.to_id)
        ]
    return shaped
