from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from . import passives
from .actions import ACTION_TYPES, Action
from .deck import build_deck
from .effects import Target, apply_effect, check_effect, parse_effect, resolve_target
from .state import (
    Event,
    MatchConfig,
    MatchState,
    PlayerState,
    damage_beast,
    damage_nexus,
    draw_cards,
    heal_beast,
)
from .types import Attack, CardDatabase

logger = logging.getLogger(__name__)

# Self-heal riders keyed by attack name, applied to the attacker's beast.
ATTACK_RIDERS: dict[str, int] = {
    "Life Drain": 2,
    "Regeneration": 3,
}

# Technique effects that may resolve on the acting player when played
# without an explicit target.
PLAY_SELF_EFFECTS: frozenset[str] = frozenset({"heal", "draw"})


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None


def _reject(state: MatchState, action: Action, msg: str) -> StepResult:
    logger.info("Rejected %s in match %s: %s", action.type, state.id, msg)
    state.event_log.append(
        {"type": "ACTION_REJECTED", "player": state.current_player_index, "action": action.type, "reason": msg}
    )
    return StepResult(ok=False, events=[], error=msg)


def _draw_card(state: MatchState, action: Action) -> StepResult | None:
    if state.phase != "draw":
        return _reject(state, action, "Not in draw phase.")
    draw_cards(state, state.current_player_index, 1)
    state.phase = "main"
    return None


def _play_card(state: MatchState, action: Action) -> StepResult | None:
    if state.phase != "main":
        return _reject(state, action, "Not in main phase.")
    p = state.current_player_index
    ps = state.players[p]
    idx = ps.hand_index(action.card_id) if action.card_id else None
    if idx is None:
        return _reject(state, action, "Card not in hand.")
    card = ps.hand[idx]

    explicit: Target | None = None
    if card.type == "technique" and action.target_type is not None:
        explicit = resolve_target(state, action.target_type)
        if explicit is None:
            return _reject(state, action, "Invalid target.")

    ps.hand.pop(idx)
    state.event_log.append({"type": "CARD_PLAYED", "player": p, "card_id": card.id})

    if card.type == "beast":
        if ps.active_beast is not None:
            # replaced outright, no swap effect
            ps.discard.append(ps.active_beast.id)
            ps.discard.extend(ps.active_beast.equipment)
        ps.active_beast = card
        state.event_log.append({"type": "BEAST_ENTERED", "player": p, "card_id": card.id})
        passives.on_beast_enter_play(state, p)
    elif card.type == "technique":
        ps.discard.append(card.id)
        _play_technique(state, card.technique_effect, explicit)
    else:
        ps.artifacts.append(card)
    return None


def _play_technique(state: MatchState, raw_effect: str | None, explicit: Target | None) -> None:
    effect = parse_effect(raw_effect)
    if effect is None:
        state.event_log.append({"type": "TECHNIQUE_FIZZLED", "reason": "malformed"})
        return
    target = explicit
    if target is None:
        if effect.type not in PLAY_SELF_EFFECTS:
            logger.info("Played %s technique without a target; no effect", effect.type)
            state.event_log.append({"type": "TECHNIQUE_FIZZLED", "reason": "no_target"})
            return
        target = Target(kind="ally_nexus", player=state.current_player_index)
    if apply_effect(state, effect, target, "play") == "rejected":
        state.event_log.append({"type": "TECHNIQUE_FIZZLED", "reason": "invalid_target"})


def _attack_precheck(state: MatchState, action: Action) -> tuple[StepResult | None, Attack | None]:
    if state.turn_count <= 1:
        return _reject(state, action, "No attacks on the first turn."), None
    ps = state.current_player
    if ps.has_attacked_this_turn:
        return _reject(state, action, "Already attacked this turn."), None
    beast = ps.active_beast
    if beast is None:
        return _reject(state, action, "No active beast."), None
    i = action.attack_index
    if i is None or i < 0 or i >= len(beast.attacks):
        return _reject(state, action, "Invalid attack index."), None
    return None, beast.attacks[i]


def _after_attack(state: MatchState, attack: Attack) -> None:
    p = state.current_player_index
    state.players[p].has_attacked_this_turn = True
    rider = ATTACK_RIDERS.get(attack.name)
    if rider is not None:
        heal_beast(state, p, rider)
    if state.phase == "attack":
        state.phase = "end"


def _attack_nexus(state: MatchState, action: Action) -> StepResult | None:
    err, attack = _attack_precheck(state, action)
    if err is not None:
        return err
    assert attack is not None
    p = state.current_player_index
    enemy = state.opponent(p)
    dealt = damage_nexus(state, enemy, attack.damage)
    state.event_log.append(
        {"type": "ATTACK_NEXUS", "player": p, "attack": attack.name, "amount": attack.damage, "dealt": dealt}
    )
    _after_attack(state, attack)
    return None


def _attack_beast(state: MatchState, action: Action) -> StepResult | None:
    if state.opponent_player.active_beast is None:
        return _reject(state, action, "Opponent has no active beast.")
    err, attack = _attack_precheck(state, action)
    if err is not None:
        return err
    assert attack is not None
    p = state.current_player_index
    enemy = state.opponent(p)
    dealt = damage_beast(state, enemy, attack.damage)
    state.event_log.append(
        {"type": "ATTACK_BEAST", "player": p, "attack": attack.name, "amount": attack.damage, "dealt": dealt}
    )
    _after_attack(state, attack)
    return None


def _end_turn(state: MatchState, action: Action) -> StepResult | None:
    state.event_log.append({"type": "TURN_ENDED", "player": state.current_player_index})
    for ps in state.players:
        ps.has_attacked_this_turn = False
    state.current_player_index = state.opponent(state.current_player_index)
    state.phase = "draw"
    state.turn_count += 1
    state.event_log.append(
        {"type": "TURN_STARTED", "player": state.current_player_index, "turn": state.turn_count}
    )
    passives.on_turn_start(state, state.current_player_index)
    return None


def _equip_artifact(state: MatchState, action: Action) -> StepResult | None:
    p = state.current_player_index
    ps = state.players[p]
    idx = next((i for i, c in enumerate(ps.artifacts) if c.id == action.card_id), None)
    if idx is None:
        return _reject(state, action, "Artifact not in play.")
    beast = ps.active_beast
    if beast is None:
        return _reject(state, action, "No active beast to equip.")
    artifact = ps.artifacts[idx]
    effect = parse_effect(artifact.artifact_effect)
    if effect is None:
        return _reject(state, action, "Malformed artifact effect.")
    target = Target(kind="ally_beast", player=p)
    if check_effect(effect, target, "equip") == "rejected":
        return _reject(state, action, f"{effect.type} cannot be equipped.")

    ps.artifacts.pop(idx)
    beast.equipment.append(artifact.id)
    state.event_log.append({"type": "ARTIFACT_EQUIPPED", "player": p, "card_id": artifact.id})
    apply_effect(state, effect, target, "equip")
    return None


def _use_from_hand(state: MatchState, action: Action, card_type: str, raw_field: str) -> StepResult | None:
    p = state.current_player_index
    ps = state.players[p]
    idx = ps.hand_index(action.card_id) if action.card_id else None
    if idx is None:
        return _reject(state, action, "Card not in hand.")
    card = ps.hand[idx]
    if card.type != card_type:
        return _reject(state, action, f"Card is not a {card_type}.")
    if action.target_type is None:
        return _reject(state, action, "Missing target.")
    effect = parse_effect(getattr(card, raw_field))
    if effect is None:
        return _reject(state, action, "Malformed card effect.")
    target = resolve_target(state, action.target_type)
    if target is None:
        return _reject(state, action, "Invalid target.")
    if check_effect(effect, target, "use") == "rejected":
        return _reject(state, action, f"{effect.type} cannot target {target.kind}.")

    ps.hand.pop(idx)
    ps.discard.append(card.id)
    state.event_log.append({"type": "CARD_USED", "player": p, "card_id": card.id, "target": target.kind})
    apply_effect(state, effect, target, "use")
    return None


def _use_artifact(state: MatchState, action: Action) -> StepResult | None:
    return _use_from_hand(state, action, "artifact", "artifact_effect")


def _use_technique(state: MatchState, action: Action) -> StepResult | None:
    return _use_from_hand(state, action, "technique", "technique_effect")


_RESOLVERS: dict[str, Callable[[MatchState, Action], StepResult | None]] = {
    "DRAW_CARD": _draw_card,
    "PLAY_CARD": _play_card,
    "ATTACK_NEXUS": _attack_nexus,
    "ATTACK_BEAST": _attack_beast,
    "END_TURN": _end_turn,
    "EQUIP_ARTIFACT": _equip_artifact,
    "USE_ARTIFACT": _use_artifact,
    "USE_TECHNIQUE": _use_technique,
}


def _end_game(state: MatchState, winner: PlayerState, reason: str) -> None:
    state.winner = winner.id
    state.event_log.append({"type": "GAME_ENDED", "winner": winner.id, "reason": reason})


def check_winner(state: MatchState) -> None:
    """First satisfied condition decides; an existing winner is never overwritten."""
    if state.winner is not None:
        return
    p0, p1 = state.players
    if p0.nexus_hp <= 0:
        _end_game(state, p1, "nexus_destroyed")
        return
    if p1.nexus_hp <= 0:
        _end_game(state, p0, "nexus_destroyed")
        return
    for i, ps in enumerate(state.players):
        if ps.active_beast is None and not ps.has_beast_available():
            _end_game(state, state.players[state.opponent(i)], "no_beasts")
            return


def step(state: MatchState, action: Action) -> StepResult:
    """Apply a single action for the current player.

    Mutates `state` in place. Rule violations never raise: the action is
    recorded, rejected and the game state is left untouched.
    """
    if state.winner is not None and state.config.reject_after_winner:
        return _reject(state, action, "Match already ended.")

    # Log first so replay has a full record of attempted actions
    state.action_log.append(action)
    start = len(state.event_log)

    resolver = _RESOLVERS.get(action.type) if action.type in ACTION_TYPES else None
    if resolver is None:
        result: StepResult | None = _reject(state, action, "Unknown action.")
    else:
        result = resolver(state, action)

    check_winner(state)
    if result is not None:
        return result
    return StepResult(ok=True, events=state.event_log[start:])


apply_action = step


def _new_player(
    cards: CardDatabase, name: str, mythology: str, cfg: MatchConfig, player_id: str | None
) -> PlayerState:
    return PlayerState(
        id=player_id or uuid.uuid4().hex,
        name=name,
        mythology=mythology,
        nexus_hp=cfg.starting_nexus_hp,
        max_nexus_hp=cfg.starting_nexus_hp,
        deck=build_deck(cards, mythology, cfg.deck),
    )


def new_match(
    cards: CardDatabase,
    p1_name: str,
    p2_name: str,
    p1_mythology: str,
    p2_mythology: str,
    *,
    config: MatchConfig | None = None,
    match_id: str | None = None,
    player_ids: Sequence[str] | None = None,
) -> MatchState:
    cfg = config or MatchConfig()
    ids: Sequence[str | None] = player_ids if player_ids is not None else (None, None)
    if len(ids) != 2:
        raise ValueError("player_ids must name exactly two players.")

    p0 = _new_player(cards, p1_name, p1_mythology, cfg, ids[0])
    p1 = _new_player(cards, p2_name, p2_mythology, cfg, ids[1])
    state = MatchState(id=match_id or uuid.uuid4().hex, players=[p0, p1], config=cfg)

    # Starting hands
    draw_cards(state, 0, cfg.starting_hand)
    draw_cards(state, 1, cfg.starting_hand)
    return state


create_match = new_match


def replay(
    cards: CardDatabase,
    p1_name: str,
    p2_name: str,
    p1_mythology: str,
    p2_mythology: str,
    actions: Iterable[Action],
    *,
    match_id: str,
    player_ids: Sequence[str],
    config: MatchConfig | None = None,
) -> MatchState:
    state = new_match(
        cards,
        p1_name,
        p2_name,
        p1_mythology,
        p2_mythology,
        config=config,
        match_id=match_id,
        player_ids=player_ids,
    )
    for a in actions:
        step(state, a)
        if state.winner is not None:
            break
    return state
