from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from mythnexus.engine.actions import Action, action_to_dict
from mythnexus.engine.match import StepResult, new_match, step
from mythnexus.engine.state import MatchConfig, MatchState
from mythnexus.engine.types import CardDatabase

from .store import InMemoryMatchStore, MatchStore
from .telemetry import TelemetryService

logger = logging.getLogger(__name__)


class MatchNotFoundError(KeyError):
    pass


@dataclass(frozen=True)
class ActionOutcome:
    state: MatchState
    result: StepResult

    @property
    def is_terminal(self) -> bool:
        return self.state.winner is not None


class GameService:
    """Match-id keyed facade for a transport layer.

    Actions for one match are applied one at a time in arrival order;
    different matches never block each other.
    """

    def __init__(
        self,
        cards: CardDatabase,
        store: MatchStore | None = None,
        telemetry: TelemetryService | None = None,
        config: MatchConfig | None = None,
    ) -> None:
        self._cards = cards
        self._store: MatchStore = store if store is not None else InMemoryMatchStore()
        self._telemetry = telemetry
        self._config = config
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, match_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(match_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[match_id] = lock
            return lock

    def _log(self, event_type: str, payload: dict[str, object]) -> None:
        if self._telemetry is not None:
            self._telemetry.log(event_type, payload)

    def create_game(self, p1_name: str, p2_name: str, p1_mythology: str, p2_mythology: str) -> MatchState:
        state = new_match(self._cards, p1_name, p2_name, p1_mythology, p2_mythology, config=self._config)
        self._store.put(state.id, state)
        logger.info("Created match %s (%s vs %s)", state.id, p1_mythology, p2_mythology)
        self._log(
            "game_created",
            {
                "match_id": state.id,
                "players": [p.id for p in state.players],
                "mythologies": [p1_mythology, p2_mythology],
            },
        )
        return state

    def get_game(self, match_id: str) -> MatchState:
        state = self._store.get(match_id)
        if state is None:
            raise MatchNotFoundError(match_id)
        return state

    def _forget_lock(self, match_id: str) -> None:
        with self._locks_guard:
            self._locks.pop(match_id, None)

    def execute_action(self, match_id: str, action: Action) -> ActionOutcome:
        with self._lock_for(match_id):
            try:
                state = self.get_game(match_id)
            except KeyError:
                self._forget_lock(match_id)
                raise
            was_terminal = state.is_terminal
            result = step(state, action)
            ended = state.is_terminal and not was_terminal
            self._store.put(match_id, state)

        self._log(
            "action",
            {"match_id": match_id, "action": action_to_dict(action), "ok": result.ok, "error": result.error},
        )
        if ended:
            logger.info("Match %s won by %s", match_id, state.winner)
            self._log("game_ended", {"match_id": match_id, "winner": state.winner, "turn": state.turn_count})
        return ActionOutcome(state=state, result=result)

    def end_game(self, match_id: str) -> None:
        """Forget a match. Unknown ids raise MatchNotFoundError."""
        with self._lock_for(match_id):
            try:
                self.get_game(match_id)
            finally:
                self._forget_lock(match_id)
            self._store.delete(match_id)
