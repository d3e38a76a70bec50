from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path

from mythnexus.engine.ai import AISpec, choose_action
from mythnexus.engine.deck import build_deck
from mythnexus.engine.serialize import snapshot
from mythnexus.engine.state import MatchConfig
from mythnexus.engine.types import MYTHOLOGIES
from mythnexus.paths import get_paths
from mythnexus.services.content import ContentError, ContentService
from mythnexus.services.games import GameService
from mythnexus.services.store import JsonFileMatchStore, MatchStore
from mythnexus.services.telemetry import TelemetryService


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


def _cmd_validate(args: argparse.Namespace) -> int:
    _content().validate_all()
    print("content ok")
    return 0


def _cmd_deck(args: argparse.Namespace) -> int:
    cards = _content().load_cards_db()
    for card in build_deck(cards, args.mythology):
        print(f"{card.type:<9} {card.id:<28} {card.name}")
    return 0


def _cmd_simulate(args: argparse.Namespace) -> int:
    content = _content()
    cards = content.load_cards_db()
    telemetry = TelemetryService(args.telemetry) if args.telemetry else None
    config = MatchConfig(passives_enabled=args.passives)
    store: MatchStore | None = None
    if args.persist:
        store = JsonFileMatchStore(get_paths().userdata_dir / "matches", content, config)
    games = GameService(cards, store=store, telemetry=telemetry, config=config)
    state = games.create_game("Player 1", "Player 2", args.p1, args.p2)

    rng = random.Random(args.seed)
    spec = AISpec(difficulty=args.difficulty)
    while state.winner is None and state.turn_count <= args.max_turns:
        state = games.execute_action(state.id, choose_action(state, rng, spec)).state

    if args.json:
        print(json.dumps(snapshot(state), indent=2, ensure_ascii=False))
        return 0
    winner = state.player_by_id(state.winner) if state.winner else None
    for i, p in enumerate(state.players):
        print(f"P{i} {p.name} ({p.mythology}): nexus {p.nexus_hp}/{p.max_nexus_hp}")
    print(f"turns: {state.turn_count}")
    print(f"winner: {winner.name if winner else 'none'}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="mythnexus")
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    p_val = sub.add_parser("validate", help="validate bundled card content")
    p_val.set_defaults(func=_cmd_validate)

    p_deck = sub.add_parser("deck", help="print the deck built for a mythology")
    p_deck.add_argument("mythology", choices=MYTHOLOGIES)
    p_deck.set_defaults(func=_cmd_deck)

    p_sim = sub.add_parser("simulate", help="play a bot-vs-bot match")
    p_sim.add_argument("--p1", choices=MYTHOLOGIES, default="greek")
    p_sim.add_argument("--p2", choices=MYTHOLOGIES, default="norse")
    p_sim.add_argument("--seed", type=int, default=0)
    p_sim.add_argument("--difficulty", type=int, default=2)
    p_sim.add_argument("--max-turns", type=int, default=60)
    p_sim.add_argument("--passives", action="store_true")
    p_sim.add_argument("--telemetry", type=Path, default=None)
    p_sim.add_argument("--persist", action="store_true", help="keep match records under the userdata dir")
    p_sim.add_argument("--json", action="store_true")
    p_sim.set_defaults(func=_cmd_simulate)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    try:
        return int(args.func(args))
    except ContentError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
