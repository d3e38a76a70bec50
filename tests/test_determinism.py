from __future__ import annotations

import random

from mythnexus.engine.actions import Action
from mythnexus.engine.ai import AISpec, ai_take_turn, choose_action, is_legal, legal_actions
from mythnexus.engine.match import new_match, replay, step
from mythnexus.engine.serialize import snapshot
from mythnexus.engine.state import MatchState
from mythnexus.paths import get_paths
from mythnexus.services.content import ContentService


def _load_cards():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_cards_db()


def _check_invariants(state: MatchState) -> None:
    for ps in state.players:
        assert 0 <= ps.nexus_hp <= ps.max_nexus_hp
        beast = ps.active_beast
        if beast is not None:
            assert beast.is_beast
            assert beast.hp is not None and beast.max_hp is not None
            assert 0 < beast.hp <= beast.max_hp
            assert all(a.damage >= 0 for a in beast.attacks)
    assert state.current_player_index in (0, 1)
    assert state.turn_count >= 1
    if state.winner is not None:
        assert state.player_by_id(state.winner) is not None


def test_engine_determinism_replay() -> None:
    cards = _load_cards()
    state1 = new_match(cards, "A", "B", "greek", "norse", match_id="det", player_ids=["p0", "p1"])

    rng = random.Random(424242)
    spec = AISpec(difficulty=1)
    actions: list[Action] = []
    for _ in range(400):
        if state1.winner is not None:
            break
        a = choose_action(state1, rng, spec)
        actions.append(a)
        step(state1, a)
        _check_invariants(state1)

    state2 = replay(cards, "A", "B", "greek", "norse", actions, match_id="det", player_ids=["p0", "p1"])
    assert snapshot(state1) == snapshot(state2)


def test_bot_matches_respect_invariants() -> None:
    cards = _load_cards()
    for seed, (m1, m2) in enumerate([("greek", "egyptian"), ("norse", "chinese"), ("chinese", "greek")]):
        state = new_match(cards, "A", "B", m1, m2)
        rng = random.Random(seed)
        for _ in range(80):
            if state.winner is not None:
                break
            ai_take_turn(state, rng, AISpec(difficulty=2))
            _check_invariants(state)


def test_legal_actions_are_accepted_without_mutating() -> None:
    cards = _load_cards()
    state = new_match(cards, "A", "B", "greek", "norse")
    before = snapshot(state)
    options = legal_actions(state)
    assert snapshot(state) == before
    assert Action.draw() in options
    assert Action.end_turn() in options
    assert Action.attack_nexus(0) not in options
    # use from hand is legal at any phase
    assert Action.use_artifact("greek_lightning_bolt", "enemy_nexus") in options
    assert not is_legal(state, Action.play("greek_aegis"))
