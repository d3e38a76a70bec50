"""Effect interpreter for technique and artifact cards.

Cards carry their effect as a serialized descriptor such as
``{"type": "damage", "amount": 5}``. Descriptors are decoded defensively:
a malformed payload never raises, it just yields no effect.

Which effect types a card may produce depends on how it is being resolved:

* ``play``  - a technique played from hand without an explicit action target
* ``use``   - a technique or artifact used from hand against a chosen target
* ``equip`` - an artifact from the artifact collection attached to the
  active beast (persistent mutation)

Both the lifecycle rules and the valid target kinds live in lookup tables so
that they can be tested exhaustively.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable, Literal

from .actions import TARGET_TYPES, TargetType
from .state import (
    MatchState,
    damage_beast,
    damage_nexus,
    destroy_active_beast,
    draw_cards,
    heal_beast,
    heal_nexus,
)

logger = logging.getLogger(__name__)

Lifecycle = Literal["play", "use", "equip"]
EffectOutcome = Literal["applied", "ignored", "rejected"]

BEAST_TARGETS: frozenset[str] = frozenset({"ally_beast", "enemy_beast"})
NEXUS_TARGETS: frozenset[str] = frozenset({"ally_nexus", "enemy_nexus"})
ANY_TARGET: frozenset[str] = BEAST_TARGETS | NEXUS_TARGETS
ALLY_BEAST: frozenset[str] = frozenset({"ally_beast"})
ENEMY_BEAST: frozenset[str] = frozenset({"enemy_beast"})

EFFECT_LIFECYCLES: dict[str, frozenset[Lifecycle]] = {
    "damage": frozenset({"play", "use"}),
    "direct_damage": frozenset({"use"}),
    "heal": frozenset({"play", "use"}),
    "heal_nexus": frozenset({"use"}),
    "attack_boost": frozenset({"use", "equip"}),
    "damage_reduction": frozenset({"use", "equip"}),
    "hp_boost": frozenset({"equip"}),
    "curse": frozenset({"use"}),
    "dispel": frozenset({"use"}),
    "draw": frozenset({"play", "use"}),
}

EFFECT_TARGET_KINDS: dict[str, frozenset[str]] = {
    "damage": ANY_TARGET,
    "direct_damage": ANY_TARGET,
    "heal": ANY_TARGET,
    "heal_nexus": frozenset({"ally_nexus"}),
    "attack_boost": ALLY_BEAST,
    "damage_reduction": ALLY_BEAST,
    "hp_boost": ALLY_BEAST,
    "curse": ENEMY_BEAST,
    "dispel": ENEMY_BEAST,
    "draw": ANY_TARGET,
}


@dataclass(frozen=True)
class EffectSpec:
    type: str
    amount: int | None = None
    target: str | None = None
    duration: str | int | None = None

    @property
    def value(self) -> int:
        return self.amount or 0


@dataclass(frozen=True)
class Target:
    kind: TargetType
    player: int

    @property
    def is_beast(self) -> bool:
        return self.kind in BEAST_TARGETS


def parse_effect(raw: str | None) -> EffectSpec | None:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Malformed effect descriptor %r: %s", raw, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Effect descriptor is not an object: %r", raw)
        return None
    t = data.get("type")
    if not isinstance(t, str):
        logger.warning("Effect descriptor missing type: %r", raw)
        return None
    amount = data.get("amount")
    if amount is not None and (not isinstance(amount, int) or isinstance(amount, bool)):
        logger.warning("Effect descriptor has non-integer amount: %r", raw)
        return None
    target = data.get("target")
    duration = data.get("duration")
    return EffectSpec(
        type=t,
        amount=amount,
        target=target if isinstance(target, str) else None,
        duration=duration if isinstance(duration, (str, int)) else None,
    )


def resolve_target(state: MatchState, target_type: str | None) -> Target | None:
    """Resolve a target kind relative to the acting player.

    Returns None for unknown kinds and for beast kinds with no beast in play.
    """
    if target_type not in TARGET_TYPES:
        return None
    acting = state.current_player_index
    player = acting if target_type.startswith("ally_") else state.opponent(acting)
    if target_type in BEAST_TARGETS and state.players[player].active_beast is None:
        return None
    return Target(kind=target_type, player=player)  # type: ignore[arg-type]


def _damage(state: MatchState, effect: EffectSpec, target: Target) -> None:
    if target.is_beast:
        damage_beast(state, target.player, effect.value)
    else:
        damage_nexus(state, target.player, effect.value)


def _heal(state: MatchState, effect: EffectSpec, target: Target) -> None:
    if target.is_beast:
        heal_beast(state, target.player, effect.value)
    else:
        heal_nexus(state, target.player, effect.value)


def _heal_own_nexus(state: MatchState, effect: EffectSpec, target: Target) -> None:
    heal_nexus(state, state.current_player_index, effect.value)


def _attack_boost(state: MatchState, effect: EffectSpec, target: Target) -> None:
    beast = state.players[target.player].active_beast
    assert beast is not None
    for attack in beast.attacks:
        attack.damage = max(0, attack.damage + effect.value)


def _grow(state: MatchState, effect: EffectSpec, target: Target) -> None:
    # damage_reduction is modelled as extra max hp, same as hp_boost
    beast = state.players[target.player].active_beast
    assert beast is not None
    beast.max_hp = max(0, (beast.max_hp or 0) + effect.value)
    beast.hp = (beast.hp or 0) + effect.value
    beast.clamp_hp()
    if beast.hp <= 0:
        destroy_active_beast(state, target.player)


def _curse(state: MatchState, effect: EffectSpec, target: Target) -> None:
    beast = state.players[target.player].active_beast
    assert beast is not None
    for attack in beast.attacks:
        attack.damage = max(1, attack.damage - effect.value)


def _dispel(state: MatchState, effect: EffectSpec, target: Target) -> None:
    logger.debug("Dispel on player %s beast has no effect", target.player)


def _draw(state: MatchState, effect: EffectSpec, target: Target) -> None:
    draw_cards(state, state.current_player_index, effect.amount or 1)


_HANDLERS: dict[str, Callable[[MatchState, EffectSpec, Target], None]] = {
    "damage": _damage,
    "direct_damage": _damage,
    "heal": _heal,
    "heal_nexus": _heal_own_nexus,
    "attack_boost": _attack_boost,
    "damage_reduction": _grow,
    "hp_boost": _grow,
    "curse": _curse,
    "dispel": _dispel,
    "draw": _draw,
}


def check_effect(effect: EffectSpec, target: Target, lifecycle: Lifecycle) -> EffectOutcome:
    """Decide, without mutating anything, whether `effect` can resolve."""
    if effect.type not in _HANDLERS:
        return "ignored"
    if lifecycle not in EFFECT_LIFECYCLES[effect.type]:
        return "rejected"
    if target.kind not in EFFECT_TARGET_KINDS[effect.type]:
        return "rejected"
    return "applied"


def apply_effect(
    state: MatchState, effect: EffectSpec, target: Target, lifecycle: Lifecycle
) -> EffectOutcome:
    outcome = check_effect(effect, target, lifecycle)
    if outcome == "ignored":
        logger.info("Unknown effect type %r ignored", effect.type)
        state.event_log.append({"type": "EFFECT_IGNORED", "effect": effect.type})
        return outcome
    if outcome == "rejected":
        return outcome
    _HANDLERS[effect.type](state, effect, target)
    state.event_log.append(
        {
            "type": "EFFECT_APPLIED",
            "effect": effect.type,
            "amount": effect.value,
            "target": target.kind,
            "player": target.player,
        }
    )
    return outcome
