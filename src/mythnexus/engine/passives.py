from __future__ import annotations

import logging
from typing import Callable

from .effects import EffectSpec, parse_effect
from .state import MatchState, draw_cards, heal_beast

logger = logging.getLogger(__name__)

Hook = Callable[[MatchState, int, EffectSpec], None]


def _draw_on_play(state: MatchState, player: int, effect: EffectSpec) -> None:
    draw_cards(state, player, effect.amount or 1)


def _heal_per_turn(state: MatchState, player: int, effect: EffectSpec) -> None:
    heal_beast(state, player, effect.value)


def _attack_boost_per_turn(state: MatchState, player: int, effect: EffectSpec) -> None:
    beast = state.players[player].active_beast
    if beast is None:
        return
    for attack in beast.attacks:
        attack.damage = max(0, attack.damage + effect.value)


ENTER_PLAY_HOOKS: dict[str, Hook] = {
    "draw_on_play": _draw_on_play,
}

TURN_START_HOOKS: dict[str, Hook] = {
    "heal_per_turn": _heal_per_turn,
    "attack_boost_per_turn": _attack_boost_per_turn,
}


def _run(state: MatchState, player: int, hooks: dict[str, Hook], trigger: str) -> None:
    if not state.config.passives_enabled:
        return
    beast = state.players[player].active_beast
    if beast is None or beast.passive is None:
        return
    effect = parse_effect(beast.passive.effect)
    if effect is None:
        return
    hook = hooks.get(effect.type)
    if hook is None:
        logger.debug("Passive %s (%s) has no %s hook", beast.passive.name, effect.type, trigger)
        return
    hook(state, player, effect)
    state.event_log.append(
        {"type": "PASSIVE_TRIGGERED", "player": player, "card_id": beast.id, "passive": effect.type}
    )


def on_beast_enter_play(state: MatchState, player: int) -> None:
    _run(state, player, ENTER_PLAY_HOOKS, "enter_play")


def on_turn_start(state: MatchState, player: int) -> None:
    _run(state, player, TURN_START_HOOKS, "turn_start")
