from __future__ import annotations

import json
from typing import Mapping

from .actions import action_to_dict
from .state import PHASES, MatchConfig, MatchState, PlayerState
from .types import Attack, Card, PassiveEffect


class RecordError(ValueError):
    pass


def _card_to_dict(c: Card | None) -> dict[str, object] | None:
    if c is None:
        return None
    return {
        "id": c.id,
        "name": c.name,
        "type": c.type,
        "mythology": c.mythology,
        "description": c.description,
        "image_url": c.image_url,
        "hp": c.hp,
        "max_hp": c.max_hp,
        "attacks": [{"name": a.name, "damage": a.damage, "description": a.description} for a in c.attacks],
        "passive": (
            None
            if c.passive is None
            else {"name": c.passive.name, "description": c.passive.description, "effect": c.passive.effect}
        ),
        "technique_effect": c.technique_effect,
        "artifact_effect": c.artifact_effect,
        "equipment": list(c.equipment),
    }


def _player_to_dict(p: PlayerState) -> dict[str, object]:
    return {
        "id": p.id,
        "name": p.name,
        "mythology": p.mythology,
        "nexus_hp": p.nexus_hp,
        "max_nexus_hp": p.max_nexus_hp,
        "hand": [_card_to_dict(c) for c in p.hand],
        "deck": [_card_to_dict(c) for c in p.deck],
        "active_beast": _card_to_dict(p.active_beast),
        "artifacts": [_card_to_dict(c) for c in p.artifacts],
        "has_attacked_this_turn": p.has_attacked_this_turn,
        "discard": list(p.discard),
    }


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state."""
    return {
        "id": state.id,
        "current_player_index": state.current_player_index,
        "phase": state.phase,
        "turn_count": state.turn_count,
        "winner": state.winner,
        "is_terminal": state.is_terminal,
        "players": [_player_to_dict(p) for p in state.players],
        "action_log": [action_to_dict(a) for a in state.action_log],
    }


def to_record(state: MatchState) -> dict[str, object]:
    """Flatten a match into the persisted row layout."""
    return {
        "id": state.id,
        "playersJSON": json.dumps([_player_to_dict(p) for p in state.players], ensure_ascii=False),
        "currentPlayerIndex": state.current_player_index,
        "phase": state.phase,
        "turnCount": state.turn_count,
        "winnerId": state.winner,
    }


def _require(obj: Mapping[str, object], key: str, kind: type | tuple[type, ...]) -> object:
    v = obj.get(key)
    if not isinstance(v, kind) or (kind is int and isinstance(v, bool)):
        raise RecordError(f"Invalid or missing {key}")
    return v


def _optional(obj: Mapping[str, object], key: str, kind: type) -> object:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, kind) or (kind is int and isinstance(v, bool)):
        raise RecordError(f"Invalid {key}")
    return v


def _card_from_dict(raw: object) -> Card:
    if not isinstance(raw, dict):
        raise RecordError("Card entry must be an object")
    ctype = _require(raw, "type", str)
    if ctype not in ("beast", "technique", "artifact"):
        raise RecordError(f"Unknown card type: {ctype}")
    attacks: list[Attack] = []
    for a in _require(raw, "attacks", list):  # type: ignore[union-attr]
        if not isinstance(a, dict):
            raise RecordError("Attack entry must be an object")
        attacks.append(
            Attack(
                name=str(_require(a, "name", str)),
                damage=int(_require(a, "damage", int)),  # type: ignore[arg-type]
                description=str(a.get("description", "")),
            )
        )
    passive = None
    raw_passive = raw.get("passive")
    if isinstance(raw_passive, dict):
        passive = PassiveEffect(
            name=str(_require(raw_passive, "name", str)),
            description=str(raw_passive.get("description", "")),
            effect=str(_require(raw_passive, "effect", str)),
        )
    equipment = raw.get("equipment", [])
    return Card(
        id=str(_require(raw, "id", str)),
        name=str(_require(raw, "name", str)),
        type=ctype,  # type: ignore[arg-type]
        mythology=str(raw.get("mythology", "")),
        description=str(raw.get("description", "")),
        image_url=_optional(raw, "image_url", str),  # type: ignore[arg-type]
        hp=_optional(raw, "hp", int),  # type: ignore[arg-type]
        max_hp=_optional(raw, "max_hp", int),  # type: ignore[arg-type]
        attacks=attacks,
        passive=passive,
        technique_effect=_optional(raw, "technique_effect", str),  # type: ignore[arg-type]
        artifact_effect=_optional(raw, "artifact_effect", str),  # type: ignore[arg-type]
        equipment=[str(e) for e in equipment] if isinstance(equipment, list) else [],
    )


def _cards(raw: Mapping[str, object], key: str) -> list[Card]:
    return [_card_from_dict(c) for c in _require(raw, key, list)]  # type: ignore[union-attr]


def _player_from_dict(raw: object) -> PlayerState:
    if not isinstance(raw, dict):
        raise RecordError("Player entry must be an object")
    beast_raw = raw.get("active_beast")
    discard = raw.get("discard", [])
    return PlayerState(
        id=str(_require(raw, "id", str)),
        name=str(_require(raw, "name", str)),
        mythology=str(raw.get("mythology", "")),
        nexus_hp=int(_require(raw, "nexus_hp", int)),  # type: ignore[arg-type]
        max_nexus_hp=int(_require(raw, "max_nexus_hp", int)),  # type: ignore[arg-type]
        deck=_cards(raw, "deck"),
        hand=_cards(raw, "hand"),
        active_beast=None if beast_raw is None else _card_from_dict(beast_raw),
        artifacts=_cards(raw, "artifacts"),
        has_attacked_this_turn=bool(_require(raw, "has_attacked_this_turn", bool)),
        discard=[str(d) for d in discard] if isinstance(discard, list) else [],
    )


def from_record(record: Mapping[str, object], config: MatchConfig | None = None) -> MatchState:
    """Rebuild a match from its persisted row.

    Action and event logs are not persisted; the restored match starts with
    empty logs.
    """
    try:
        players_raw = json.loads(str(_require(record, "playersJSON", str)))
    except json.JSONDecodeError as e:
        raise RecordError(f"Invalid playersJSON: {e}") from e
    if not isinstance(players_raw, list) or len(players_raw) != 2:
        raise RecordError("playersJSON must hold exactly two players")

    phase = _require(record, "phase", str)
    if phase not in PHASES:
        raise RecordError(f"Unknown phase: {phase}")
    current = _require(record, "currentPlayerIndex", int)
    if current not in (0, 1):
        raise RecordError("currentPlayerIndex must be 0 or 1")
    turn = _require(record, "turnCount", int)
    if turn < 1:  # type: ignore[operator]
        raise RecordError("turnCount must be >= 1")

    players = [_player_from_dict(p) for p in players_raw]
    winner = _optional(record, "winnerId", str)
    if winner is not None and winner not in (players[0].id, players[1].id):
        raise RecordError("winnerId must name one of the players")

    return MatchState(
        id=str(_require(record, "id", str)),
        players=players,
        config=config or MatchConfig(),
        current_player_index=current,  # type: ignore[arg-type]
        phase=phase,  # type: ignore[arg-type]
        turn_count=turn,  # type: ignore[arg-type]
        winner=winner,  # type: ignore[arg-type]
    )
