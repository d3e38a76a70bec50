from __future__ import annotations

from mythnexus.engine.actions import Action
from mythnexus.engine.match import new_match, step
from mythnexus.engine.types import Card
from mythnexus.paths import get_paths
from mythnexus.services.content import ContentService


def _load_cards():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_cards_db()


def _card(cards, card_id: str) -> Card:
    return Card.from_definition(cards.get(card_id))


def _fresh(p1: str = "greek", p2: str = "greek"):
    cards = _load_cards()
    return cards, new_match(cards, "Alice", "Bob", p1, p2)


def test_create_match_deals_opening_hands() -> None:
    _, state = _fresh()
    assert state.turn_count == 1
    assert state.phase == "draw"
    assert state.current_player_index == 0
    assert state.winner is None
    for p in state.players:
        assert p.nexus_hp == 20 and p.max_nexus_hp == 20
        assert len(p.hand) == 3
        # 4 beasts + 2 techniques + 2 artifacts, three of them dealt
        assert len(p.deck) + len(p.hand) == 8
        assert p.active_beast is None
        assert p.has_attacked_this_turn is False
    # dealt from the draw end of the deck
    assert [c.id for c in state.players[0].hand] == [
        "greek_lightning_bolt",
        "greek_aegis",
        "greek_medusa_curse",
    ]
    assert state.players[0].id != state.players[1].id


def test_draw_card_moves_to_main() -> None:
    _, state = _fresh()
    res = step(state, Action.draw())
    assert res.ok
    assert len(state.players[0].hand) == 4
    assert state.players[0].hand[-1].id == "greek_zeus_bolt"
    assert state.phase == "main"

    # only once per draw phase
    res2 = step(state, Action.draw())
    assert not res2.ok
    assert len(state.players[0].hand) == 4


def test_draw_from_empty_deck_is_silent() -> None:
    cards, state = _fresh()
    state.players[0].deck.clear()
    state.players[0].active_beast = _card(cards, "greek_minotaur")
    res = step(state, Action.draw())
    assert res.ok
    assert len(state.players[0].hand) == 3
    assert state.phase == "main"


def test_play_beast_becomes_active() -> None:
    cards, state = _fresh()
    step(state, Action.draw())
    step(state, Action.draw())  # rejected, still main
    p0 = state.players[0]
    p0.hand.append(_card(cards, "greek_minotaur"))
    res = step(state, Action.play("greek_minotaur"))
    assert res.ok
    assert p0.active_beast is not None and p0.active_beast.id == "greek_minotaur"
    assert p0.hand_index("greek_minotaur") is None
    assert state.phase == "main"


def test_play_requires_main_phase_and_card_in_hand() -> None:
    cards, state = _fresh()
    p0 = state.players[0]
    p0.hand.append(_card(cards, "greek_minotaur"))
    res = step(state, Action.play("greek_minotaur"))
    assert not res.ok
    assert p0.active_beast is None
    assert p0.hand_index("greek_minotaur") is not None

    step(state, Action.draw())
    res2 = step(state, Action.play("norse_thor"))
    assert not res2.ok
    assert res2.error == "Card not in hand."


def test_new_beast_replaces_active_one() -> None:
    cards, state = _fresh()
    step(state, Action.draw())
    p0 = state.players[0]
    p0.hand.extend([_card(cards, "greek_minotaur"), _card(cards, "greek_hydra")])
    step(state, Action.play("greek_minotaur"))
    step(state, Action.play("greek_hydra"))
    assert p0.active_beast is not None and p0.active_beast.id == "greek_hydra"
    assert "greek_minotaur" in p0.discard


def test_play_artifact_joins_collection() -> None:
    _, state = _fresh()
    step(state, Action.draw())
    res = step(state, Action.play("greek_aegis"))
    assert res.ok
    assert [c.id for c in state.players[0].artifacts] == ["greek_aegis"]


def test_attack_nexus_once_per_turn() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    p0.active_beast = _card(cards, "greek_minotaur")
    state.turn_count = 2

    res = step(state, Action.attack_nexus(0))
    assert res.ok
    assert p1.nexus_hp == 16
    assert p0.has_attacked_this_turn is True

    res2 = step(state, Action.attack_nexus(0))
    assert not res2.ok
    assert p1.nexus_hp == 16


def test_no_attacks_on_first_turn() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    p0.active_beast = _card(cards, "greek_minotaur")
    p1.active_beast = _card(cards, "greek_hydra")
    assert not step(state, Action.attack_nexus(0)).ok
    assert not step(state, Action.attack_beast(0)).ok
    assert p1.nexus_hp == 20
    assert p1.active_beast.hp == 6
    assert p0.has_attacked_this_turn is False


def test_attack_needs_beast_and_valid_index() -> None:
    cards, state = _fresh()
    state.turn_count = 2
    assert not step(state, Action.attack_nexus(0)).ok
    state.players[0].active_beast = _card(cards, "greek_minotaur")
    assert not step(state, Action.attack_nexus(5)).ok
    assert not step(state, Action.attack_nexus(-1)).ok
    assert not step(state, Action(type="ATTACK_NEXUS")).ok
    assert state.players[1].nexus_hp == 20
    assert state.players[0].has_attacked_this_turn is False


def test_attack_beast_destroys_at_zero() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    state.turn_count = 2
    p0.active_beast = _card(cards, "norse_thor")
    assert not step(state, Action.attack_beast(0)).ok  # no defender yet

    p1.active_beast = _card(cards, "greek_minotaur")
    res = step(state, Action.attack_beast(0))
    assert res.ok
    assert p1.active_beast is None
    assert "greek_minotaur" in p1.discard
    assert any(e["type"] == "BEAST_DESTROYED" for e in res.events)


def test_attack_phase_moves_to_end() -> None:
    cards, state = _fresh()
    state.turn_count = 2
    state.phase = "attack"
    state.players[0].active_beast = _card(cards, "greek_minotaur")
    step(state, Action.attack_nexus(1))
    assert state.phase == "end"
    assert state.players[1].nexus_hp == 17


def test_life_drain_heals_attacker() -> None:
    cards, state = _fresh()
    state.turn_count = 2
    medusa = _card(cards, "greek_medusa")
    medusa.hp = 1
    state.players[0].active_beast = medusa
    step(state, Action.attack_nexus(0))
    assert state.players[1].nexus_hp == 17
    assert medusa.hp == 3


def test_end_turn_swaps_and_resets() -> None:
    _, state = _fresh()
    state.players[0].has_attacked_this_turn = True
    state.players[1].has_attacked_this_turn = True
    state.phase = "main"
    res = step(state, Action.end_turn())
    assert res.ok
    assert state.current_player_index == 1
    assert state.turn_count == 2
    assert state.phase == "draw"
    assert [p.has_attacked_this_turn for p in state.players] == [False, False]

    step(state, Action.end_turn())
    assert state.current_player_index == 0
    assert state.turn_count == 3


def test_actions_always_act_for_current_player() -> None:
    _, state = _fresh()
    step(state, Action.end_turn())
    step(state, Action.draw())
    assert len(state.players[1].hand) == 4
    assert len(state.players[0].hand) == 3


def test_technique_kills_opponent_nexus() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    p0.hand.append(_card(cards, "egyptian_anubis_judgment"))
    p1.nexus_hp = 6
    res = step(state, Action.use_technique("egyptian_anubis_judgment", "enemy_nexus"))
    assert res.ok
    assert p1.nexus_hp == 0
    assert state.winner == p0.id
    assert state.is_terminal


def test_damage_technique_removes_beast_at_exactly_zero() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    p1.active_beast = _card(cards, "greek_minotaur")  # 5 hp
    res = step(state, Action.use_technique("greek_medusa_curse", "enemy_beast"))  # 4 damage
    assert res.ok
    assert p1.active_beast.hp == 1
    p0.hand.append(_card(cards, "norse_ragnarok"))  # 4 damage
    p1.active_beast.hp = 4
    step(state, Action.use_technique("norse_ragnarok", "enemy_beast"))
    assert p1.active_beast is None
    assert p1.discard == ["greek_minotaur"]


def test_unresolvable_target_rejects_without_mutation() -> None:
    _, state = _fresh()
    p0 = state.players[0]
    before = [c.id for c in p0.hand]
    res = step(state, Action.use_technique("greek_medusa_curse", "enemy_beast"))
    assert not res.ok
    assert [c.id for c in p0.hand] == before
    res2 = step(state, Action.use_technique("greek_medusa_curse", "the_moon"))  # type: ignore[arg-type]
    assert not res2.ok
    res3 = step(state, Action(type="USE_TECHNIQUE", card_id="greek_medusa_curse"))
    assert not res3.ok
    assert [c.id for c in p0.hand] == before


def test_use_technique_requires_technique_card() -> None:
    _, state = _fresh()
    res = step(state, Action.use_technique("greek_aegis", "ally_nexus"))
    assert not res.ok
    res2 = step(state, Action.use_artifact("greek_medusa_curse", "enemy_nexus"))
    assert not res2.ok
    assert len(state.players[0].hand) == 3


def test_malformed_effect_is_rejected_quietly() -> None:
    cards, state = _fresh()
    broken = _card(cards, "greek_zeus_bolt")
    broken.id = "broken_bolt"
    broken.technique_effect = "{not json"
    state.players[0].hand.append(broken)
    res = step(state, Action.use_technique("broken_bolt", "enemy_nexus"))
    assert not res.ok
    assert state.players[1].nexus_hp == 20
    assert state.players[0].hand_index("broken_bolt") is not None


def test_unknown_effect_type_is_consumed_without_effect() -> None:
    cards, state = _fresh()
    odd = _card(cards, "greek_zeus_bolt")
    odd.id = "odd_bolt"
    odd.technique_effect = '{"type": "summon", "amount": 2}'
    state.players[0].hand.append(odd)
    res = step(state, Action.use_technique("odd_bolt", "enemy_nexus"))
    assert res.ok
    assert state.players[0].hand_index("odd_bolt") is None
    assert state.players[1].nexus_hp == 20
    assert any(e["type"] == "EFFECT_IGNORED" for e in res.events)


def test_played_heal_technique_targets_own_nexus() -> None:
    cards, state = _fresh()
    p0 = state.players[0]
    p0.nexus_hp = 10
    p0.hand.append(_card(cards, "chinese_dao_harmony"))
    step(state, Action.draw())
    res = step(state, Action.play("chinese_dao_harmony"))
    assert res.ok
    assert p0.nexus_hp == 15
    assert "chinese_dao_harmony" in p0.discard


def test_played_damage_technique_needs_explicit_target() -> None:
    _, state = _fresh()
    step(state, Action.draw())
    res = step(state, Action.play("greek_zeus_bolt"))
    assert res.ok
    assert state.players[1].nexus_hp == 20
    assert state.players[0].nexus_hp == 20
    assert state.players[0].hand_index("greek_zeus_bolt") is None
    assert any(e["type"] == "TECHNIQUE_FIZZLED" for e in res.events)

    res2 = step(state, Action.play("greek_medusa_curse", "enemy_nexus"))
    assert res2.ok
    assert state.players[1].nexus_hp == 16


def test_equip_artifact_applies_once() -> None:
    cards, state = _fresh()
    p0 = state.players[0]
    step(state, Action.draw())
    step(state, Action.play("greek_aegis"))
    assert not step(state, Action.equip("greek_aegis")).ok  # no beast yet

    p0.hand.append(_card(cards, "greek_minotaur"))
    step(state, Action.play("greek_minotaur"))
    res = step(state, Action.equip("greek_aegis"))
    assert res.ok
    beast = p0.active_beast
    assert beast is not None
    assert (beast.hp, beast.max_hp) == (7, 7)
    assert beast.equipment == ["greek_aegis"]
    assert p0.artifacts == []

    assert not step(state, Action.equip("greek_aegis")).ok
    assert (beast.hp, beast.max_hp) == (7, 7)


def test_equip_rejects_instant_artifacts() -> None:
    cards, state = _fresh()
    p0 = state.players[0]
    p0.active_beast = _card(cards, "greek_minotaur")
    step(state, Action.draw())
    step(state, Action.play("greek_lightning_bolt"))
    res = step(state, Action.equip("greek_lightning_bolt"))
    assert not res.ok
    assert [c.id for c in p0.artifacts] == ["greek_lightning_bolt"]
    assert p0.active_beast.hp == 5


def test_use_artifact_from_hand() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    res = step(state, Action.use_artifact("greek_lightning_bolt", "enemy_nexus"))
    assert res.ok
    assert p1.nexus_hp == 17
    assert p0.hand_index("greek_lightning_bolt") is None

    p0.active_beast = _card(cards, "norse_thor")
    p0.hand.append(_card(cards, "norse_mjolnir"))
    step(state, Action.use_artifact("norse_mjolnir", "ally_beast"))
    assert [a.damage for a in p0.active_beast.attacks] == [9, 7, 5]


def test_heal_nexus_artifact_only_targets_own_nexus() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    p0.nexus_hp = 12
    p1.nexus_hp = 12
    p0.hand.append(_card(cards, "chinese_jade_amulet"))
    assert not step(state, Action.use_artifact("chinese_jade_amulet", "enemy_nexus")).ok
    assert p1.nexus_hp == 12
    assert step(state, Action.use_artifact("chinese_jade_amulet", "ally_nexus")).ok
    assert p0.nexus_hp == 17


def test_curse_floors_each_attack_at_one() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    p1.active_beast = _card(cards, "egyptian_bastet")  # attacks 0 and 2
    p0.hand.append(_card(cards, "egyptian_curse_scroll"))
    res = step(state, Action.use_artifact("egyptian_curse_scroll", "enemy_beast"))
    assert res.ok
    assert [a.damage for a in p1.active_beast.attacks] == [1, 1]


def test_dispel_is_a_no_op_that_consumes_the_card() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    p1.active_beast = _card(cards, "norse_thor")
    p0.hand.append(_card(cards, "norse_rune_stone"))
    res = step(state, Action.use_artifact("norse_rune_stone", "enemy_beast"))
    assert res.ok
    assert [a.damage for a in p1.active_beast.attacks] == [6, 4, 2]
    assert p0.hand_index("norse_rune_stone") is None


def test_nexus_win_is_first_writer() -> None:
    _, state = _fresh()
    p0, p1 = state.players
    p0.nexus_hp = 0
    p1.nexus_hp = 0
    step(state, Action.end_turn())
    assert state.winner == p1.id
    events = [e for e in state.event_log if e["type"] == "GAME_ENDED"]
    assert len(events) == 1


def test_no_beasts_left_loses() -> None:
    _, state = _fresh()
    p0, p1 = state.players
    p1.hand = [c for c in p1.hand if not c.is_beast]
    p1.deck = [c for c in p1.deck if not c.is_beast]
    step(state, Action.draw())
    assert state.winner == p0.id


def test_terminal_match_rejects_actions() -> None:
    _, state = _fresh()
    state.players[1].nexus_hp = 0
    step(state, Action.draw())
    assert state.winner == state.players[0].id
    logged = len(state.action_log)
    turn = state.turn_count
    res = step(state, Action.end_turn())
    assert not res.ok
    assert res.error == "Match already ended."
    assert state.event_log[-1]["type"] == "ACTION_REJECTED"
    assert state.turn_count == turn
    assert len(state.action_log) == logged


def test_rejections_are_audited() -> None:
    _, state = _fresh()
    res = step(state, Action.end_turn())
    assert res.ok
    res = step(state, Action.attack_nexus(0))
    assert not res.ok
    assert state.event_log[-1]["type"] == "ACTION_REJECTED"
    assert state.action_log[-1] == Action.attack_nexus(0)
    res = step(state, Action(type="CAST_SPELL"))  # type: ignore[arg-type]
    assert not res.ok
    assert res.error == "Unknown action."


def test_curse_and_dispel_only_hit_enemy_beasts() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    p0.active_beast = _card(cards, "norse_thor")
    p1.active_beast = _card(cards, "norse_thor")
    p0.hand.extend([_card(cards, "egyptian_curse_scroll"), _card(cards, "norse_rune_stone")])

    assert not step(state, Action.use_artifact("egyptian_curse_scroll", "ally_beast")).ok
    assert not step(state, Action.use_artifact("norse_rune_stone", "ally_beast")).ok
    assert [a.damage for a in p0.active_beast.attacks] == [6, 4, 2]
    assert p0.hand_index("egyptian_curse_scroll") is not None
    assert p0.hand_index("norse_rune_stone") is not None


def test_boosts_only_hit_own_beast() -> None:
    cards, state = _fresh()
    p0, p1 = state.players
    p0.active_beast = _card(cards, "norse_thor")
    p1.active_beast = _card(cards, "norse_thor")
    p0.hand.extend([_card(cards, "norse_mjolnir"), _card(cards, "greek_aegis")])

    assert not step(state, Action.use_artifact("norse_mjolnir", "enemy_beast")).ok
    assert not step(state, Action.use_artifact("greek_aegis", "enemy_beast")).ok
    assert [a.damage for a in p1.active_beast.attacks] == [6, 4, 2]
    assert p1.active_beast.max_hp == 9

    assert step(state, Action.use_artifact("greek_aegis", "ally_beast")).ok
    assert p0.active_beast.max_hp == 11
