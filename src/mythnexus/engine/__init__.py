"""Deterministic, headless rules engine for mythnexus.

IMPORTANT: This package performs no I/O besides logging.
"""

from .actions import Action, ActionError, ActionType, TargetType, action_from_dict, action_to_dict
from .deck import DeckComposition, build_deck
from .match import StepResult, apply_action, check_winner, create_match, new_match, step
from .serialize import RecordError, from_record, snapshot, to_record
from .state import MatchConfig, MatchState, Phase, PlayerState
from .types import Card, CardDatabase, CardDefinition, CardType

__all__ = [
    "Action",
    "ActionError",
    "ActionType",
    "Card",
    "CardDatabase",
    "CardDefinition",
    "CardType",
    "DeckComposition",
    "MatchConfig",
    "MatchState",
    "Phase",
    "PlayerState",
    "RecordError",
    "StepResult",
    "TargetType",
    "action_from_dict",
    "action_to_dict",
    "apply_action",
    "build_deck",
    "check_winner",
    "create_match",
    "from_record",
    "new_match",
    "snapshot",
    "step",
    "to_record",
]
