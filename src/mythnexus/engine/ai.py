from __future__ import annotations

import copy
import random
from dataclasses import dataclass

from .actions import TARGET_TYPES, Action
from .effects import parse_effect
from .match import step
from .state import MatchState
from .types import Card


@dataclass(frozen=True)
class AISpec:
    """Simple AI tuning parameters.

    difficulty:
      0 = easy (skips good plays now and then)
      1 = normal
      2 = hard (never skips)
    """

    difficulty: int = 1


def _candidate_actions(state: MatchState) -> list[Action]:
    ps = state.current_player
    out: list[Action] = [Action.draw()]
    for c in ps.hand:
        out.append(Action.play(c.id))
        if c.type == "technique":
            out.extend(Action.use_technique(c.id, t) for t in TARGET_TYPES)  # type: ignore[arg-type]
        if c.type == "artifact":
            out.extend(Action.use_artifact(c.id, t) for t in TARGET_TYPES)  # type: ignore[arg-type]
    for c in ps.artifacts:
        out.append(Action.equip(c.id))
    if ps.active_beast is not None:
        for i in range(len(ps.active_beast.attacks)):
            out.append(Action.attack_nexus(i))
            out.append(Action.attack_beast(i))
    out.append(Action.end_turn())
    return out


def is_legal(state: MatchState, action: Action) -> bool:
    """True if `action` would be accepted now. Resolves on a throwaway copy."""
    if state.winner is not None:
        return False
    trial = copy.deepcopy(state)
    return step(trial, action).ok


def legal_actions(state: MatchState) -> list[Action]:
    return [a for a in _candidate_actions(state) if is_legal(state, a)]


def _effect_amount(card: Card) -> int:
    raw = card.technique_effect if card.type == "technique" else card.artifact_effect
    eff = parse_effect(raw)
    return eff.value if eff is not None else 0


def _score(state: MatchState, action: Action) -> float:
    ps = state.current_player
    if action.type == "DRAW_CARD":
        return 100.0
    if action.type == "PLAY_CARD":
        idx = ps.hand_index(action.card_id or "")
        card = ps.hand[idx] if idx is not None else None
        if card is None:
            return 0.0
        if card.is_beast:
            # only bother replacing a beast that is nearly dead
            if ps.active_beast is not None and (ps.active_beast.hp or 0) > 2:
                return -1.0
            return 50.0 + float(card.hp or 0)
        if card.type == "artifact":
            return 20.0
        return -1.0
    if action.type in ("ATTACK_NEXUS", "ATTACK_BEAST"):
        beast = ps.active_beast
        assert beast is not None and action.attack_index is not None
        dmg = float(beast.attacks[action.attack_index].damage)
        if action.type == "ATTACK_NEXUS":
            return 30.0 + dmg * 1.2
        return 30.0 + dmg
    if action.type == "EQUIP_ARTIFACT":
        return 25.0
    if action.type in ("USE_TECHNIQUE", "USE_ARTIFACT"):
        idx = ps.hand_index(action.card_id or "")
        if idx is None:
            return 0.0
        amount = float(_effect_amount(ps.hand[idx]))
        trial = copy.deepcopy(state)
        before = trial.opponent_player.nexus_hp - trial.current_player.nexus_hp
        step(trial, action)
        after = trial.opponent_player.nexus_hp - trial.current_player.nexus_hp
        # positive when the opponent lost ground
        return 10.0 + float(before - after) + amount * 0.1
    return 0.0


def choose_action(state: MatchState, rng: random.Random, spec: AISpec | None = None) -> Action:
    spec = spec or AISpec()
    options = legal_actions(state)
    scored = sorted(((_score(state, a), i, a) for i, a in enumerate(options)), key=lambda t: (-t[0], t[1]))
    best = [a for s, _, a in scored if s > 0 and a.type != "END_TURN"]
    if not best:
        return Action.end_turn()
    if spec.difficulty <= 0 and rng.random() < 0.35:
        return Action.end_turn()
    if spec.difficulty == 1 and rng.random() < 0.10 and len(best) > 1:
        return best[1]
    return best[0]


def ai_take_turn(state: MatchState, rng: random.Random, spec: AISpec | None = None, max_steps: int = 50) -> None:
    """Advance the match through the current player's turn."""
    player = state.current_player_index
    for _ in range(max_steps):
        if state.winner is not None or state.current_player_index != player:
            return
        step(state, choose_action(state, rng, spec))
    if state.winner is None and state.current_player_index == player:
        step(state, Action.end_turn())
