from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Mapping, get_args

ActionType = Literal[
    "DRAW_CARD",
    "PLAY_CARD",
    "ATTACK_NEXUS",
    "ATTACK_BEAST",
    "END_TURN",
    "EQUIP_ARTIFACT",
    "USE_ARTIFACT",
    "USE_TECHNIQUE",
]
TargetType = Literal["ally_beast", "enemy_beast", "ally_nexus", "enemy_nexus"]

ACTION_TYPES: tuple[str, ...] = get_args(ActionType)
TARGET_TYPES: tuple[str, ...] = get_args(TargetType)


class ActionError(ValueError):
    pass


@dataclass(frozen=True)
class Action:
    type: ActionType
    card_id: str | None = None
    attack_index: int | None = None
    target_type: TargetType | None = None
    target_id: str | None = None

    @staticmethod
    def draw() -> "Action":
        return Action(type="DRAW_CARD")

    @staticmethod
    def play(card_id: str, target_type: TargetType | None = None) -> "Action":
        return Action(type="PLAY_CARD", card_id=card_id, target_type=target_type)

    @staticmethod
    def attack_nexus(attack_index: int) -> "Action":
        return Action(type="ATTACK_NEXUS", attack_index=attack_index)

    @staticmethod
    def attack_beast(attack_index: int) -> "Action":
        return Action(type="ATTACK_BEAST", attack_index=attack_index)

    @staticmethod
    def end_turn() -> "Action":
        return Action(type="END_TURN")

    @staticmethod
    def equip(card_id: str) -> "Action":
        return Action(type="EQUIP_ARTIFACT", card_id=card_id)

    @staticmethod
    def use_artifact(card_id: str, target_type: TargetType, target_id: str | None = None) -> "Action":
        return Action(type="USE_ARTIFACT", card_id=card_id, target_type=target_type, target_id=target_id)

    @staticmethod
    def use_technique(card_id: str, target_type: TargetType, target_id: str | None = None) -> "Action":
        return Action(type="USE_TECHNIQUE", card_id=card_id, target_type=target_type, target_id=target_id)


def _optional_str(d: Mapping[str, object], key: str) -> str | None:
    v = d.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ActionError(f"Expected string for {key}")
    return v


def action_from_dict(d: Mapping[str, object]) -> Action:
    """Parse a transport payload (`{type, cardId, attackIndex, targetType, targetId}`)."""
    t = d.get("type")
    if t not in ACTION_TYPES:
        raise ActionError(f"Unknown action type: {t!r}")
    idx = d.get("attackIndex")
    if idx is not None and (not isinstance(idx, int) or isinstance(idx, bool)):
        raise ActionError("Expected int for attackIndex")
    # Unknown target types are left for the resolver to reject.
    return Action(
        type=t,  # type: ignore[arg-type]
        card_id=_optional_str(d, "cardId"),
        attack_index=idx,
        target_type=_optional_str(d, "targetType"),  # type: ignore[arg-type]
        target_id=_optional_str(d, "targetId"),
    )


def action_to_dict(a: Action) -> dict[str, object]:
    out: dict[str, object] = {"type": a.type}
    if a.card_id is not None:
        out["cardId"] = a.card_id
    if a.attack_index is not None:
        out["attackIndex"] = a.attack_index
    if a.target_type is not None:
        out["targetType"] = a.target_type
    if a.target_id is not None:
        out["targetId"] = a.target_id
    return out
