from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

CardType = Literal["beast", "technique", "artifact"]
Mythology = Literal["greek", "egyptian", "norse", "chinese"]

MYTHOLOGIES: tuple[Mythology, ...] = ("greek", "egyptian", "norse", "chinese")


@dataclass(frozen=True)
class AttackDefinition:
    name: str
    damage: int
    description: str = ""


@dataclass(frozen=True)
class PassiveEffect:
    """Passive ability declared on a beast. `effect` is a serialized descriptor."""

    name: str
    description: str
    effect: str


@dataclass(frozen=True)
class CardDefinition:
    id: str
    name: str
    type: CardType
    mythology: str
    description: str
    image_url: str | None = None
    hp: int | None = None
    max_hp: int | None = None
    attacks: tuple[AttackDefinition, ...] = ()
    passive: PassiveEffect | None = None
    technique_effect: str | None = None
    artifact_effect: str | None = None


@dataclass(frozen=True)
class CardDatabase:
    """Immutable card catalog shared by every match."""

    cards: dict[str, CardDefinition]

    def get(self, card_id: str) -> CardDefinition:
        return self.cards[card_id]

    def all_ids(self) -> Sequence[str]:
        return list(self.cards.keys())

    def by_mythology(self, mythology: str) -> list[CardDefinition]:
        # dict preserves catalog order
        return [c for c in self.cards.values() if c.mythology == mythology]


@dataclass
class Attack:
    name: str
    damage: int
    description: str = ""


@dataclass
class Card:
    """A card instance owned by one match.

    Beasts carry their own hp and attack list so that artifacts and curses
    only ever touch the copy in play, never the catalog.
    """

    id: str
    name: str
    type: CardType
    mythology: str
    description: str
    image_url: str | None = None
    hp: int | None = None
    max_hp: int | None = None
    attacks: list[Attack] = field(default_factory=list)
    passive: PassiveEffect | None = None
    technique_effect: str | None = None
    artifact_effect: str | None = None
    # ids of artifacts equipped onto this beast
    equipment: list[str] = field(default_factory=list)

    @property
    def is_beast(self) -> bool:
        return self.type == "beast"

    def clamp_hp(self) -> None:
        if self.hp is None:
            return
        ceiling = self.max_hp if self.max_hp is not None else self.hp
        self.hp = max(0, min(ceiling, self.hp))

    @staticmethod
    def from_definition(d: CardDefinition) -> "Card":
        return Card(
            id=d.id,
            name=d.name,
            type=d.type,
            mythology=d.mythology,
            description=d.description,
            image_url=d.image_url,
            hp=d.hp,
            max_hp=d.max_hp,
            attacks=[Attack(name=a.name, damage=a.damage, description=a.description) for a in d.attacks],
            passive=d.passive,
            technique_effect=d.technique_effect,
            artifact_effect=d.artifact_effect,
        )
