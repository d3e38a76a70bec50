from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .actions import Action
from .deck import DeckComposition
from .types import Card

Phase = Literal["draw", "main", "attack", "end"]
PHASES: tuple[Phase, ...] = ("draw", "main", "attack", "end")

Event = dict[str, object]


@dataclass(frozen=True)
class MatchConfig:
    starting_nexus_hp: int = 20
    starting_hand: int = 3
    deck: DeckComposition = DeckComposition()
    passives_enabled: bool = False
    # when False, actions keep resolving after a winner is set
    reject_after_winner: bool = True


@dataclass
class PlayerState:
    id: str
    name: str
    mythology: str
    nexus_hp: int
    max_nexus_hp: int
    deck: list[Card]
    hand: list[Card] = field(default_factory=list)
    active_beast: Card | None = None
    artifacts: list[Card] = field(default_factory=list)
    has_attacked_this_turn: bool = False
    discard: list[str] = field(default_factory=list)

    def hand_index(self, card_id: str) -> int | None:
        for i, c in enumerate(self.hand):
            if c.id == card_id:
                return i
        return None

    def has_beast_available(self) -> bool:
        return any(c.is_beast for c in self.hand) or any(c.is_beast for c in self.deck)


@dataclass
class MatchState:
    id: str
    players: list[PlayerState]
    config: MatchConfig = field(default_factory=MatchConfig)
    current_player_index: int = 0
    phase: Phase = "draw"
    turn_count: int = 1
    winner: str | None = None
    action_log: list[Action] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)

    def opponent(self, player: int) -> int:
        return 1 - player

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_index]

    @property
    def opponent_player(self) -> PlayerState:
        return self.players[self.opponent(self.current_player_index)]

    @property
    def is_terminal(self) -> bool:
        return self.winner is not None

    def player_by_id(self, player_id: str) -> PlayerState | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None


def draw_cards(state: MatchState, player: int, count: int) -> int:
    """Move up to `count` cards from the deck end into the hand."""
    ps = state.players[player]
    drawn = 0
    for _ in range(max(0, count)):
        if not ps.deck:
            break
        card = ps.deck.pop()
        ps.hand.append(card)
        drawn += 1
        state.event_log.append({"type": "CARD_DRAWN", "player": player, "card_id": card.id})
    return drawn


def damage_nexus(state: MatchState, player: int, amount: int) -> int:
    if amount <= 0:
        return 0
    ps = state.players[player]
    dealt = min(ps.nexus_hp, amount)
    ps.nexus_hp = max(0, ps.nexus_hp - amount)
    state.event_log.append({"type": "DAMAGE_NEXUS", "player": player, "amount": amount, "dealt": dealt})
    return dealt


def heal_nexus(state: MatchState, player: int, amount: int) -> int:
    if amount <= 0:
        return 0
    ps = state.players[player]
    before = ps.nexus_hp
    ps.nexus_hp = min(ps.max_nexus_hp, ps.nexus_hp + amount)
    healed = ps.nexus_hp - before
    if healed > 0:
        state.event_log.append({"type": "HEAL_NEXUS", "player": player, "amount": healed})
    return healed


def destroy_active_beast(state: MatchState, player: int) -> None:
    ps = state.players[player]
    beast = ps.active_beast
    if beast is None:
        return
    ps.active_beast = None
    ps.discard.append(beast.id)
    ps.discard.extend(beast.equipment)
    state.event_log.append({"type": "BEAST_DESTROYED", "player": player, "card_id": beast.id})


def damage_beast(state: MatchState, player: int, amount: int) -> int:
    """Damage `player`'s active beast; a beast left at 0 hp leaves play."""
    ps = state.players[player]
    beast = ps.active_beast
    if beast is None or beast.hp is None:
        return 0
    amount = max(0, amount)
    dealt = min(beast.hp, amount)
    beast.hp -= amount
    beast.clamp_hp()
    state.event_log.append(
        {"type": "DAMAGE_BEAST", "player": player, "card_id": beast.id, "amount": amount, "dealt": dealt}
    )
    if beast.hp <= 0:
        destroy_active_beast(state, player)
    return dealt


def heal_beast(state: MatchState, player: int, amount: int) -> int:
    ps = state.players[player]
    beast = ps.active_beast
    if beast is None or beast.hp is None or amount <= 0:
        return 0
    before = beast.hp
    beast.hp += amount
    beast.clamp_hp()
    healed = beast.hp - before
    if healed > 0:
        state.event_log.append({"type": "HEAL_BEAST", "player": player, "card_id": beast.id, "amount": healed})
    return healed
