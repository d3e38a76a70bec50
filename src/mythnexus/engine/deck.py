from __future__ import annotations

from dataclasses import dataclass

from .types import Card, CardDatabase


@dataclass(frozen=True)
class DeckComposition:
    beasts: int = 4
    techniques: int = 3
    artifacts: int = 3

    @property
    def size(self) -> int:
        return self.beasts + self.techniques + self.artifacts


def build_deck(
    cards: CardDatabase, mythology: str, composition: DeckComposition | None = None
) -> list[Card]:
    """Build a balanced deck for `mythology`.

    Takes the first N cards of each type in catalog order; a category with too
    few cards contributes what it has. Every call returns fresh card instances.
    """
    comp = composition or DeckComposition()
    pool = cards.by_mythology(mythology)
    beasts = [c for c in pool if c.type == "beast"][: comp.beasts]
    techniques = [c for c in pool if c.type == "technique"][: comp.techniques]
    artifacts = [c for c in pool if c.type == "artifact"][: comp.artifacts]
    return [Card.from_definition(c) for c in beasts + techniques + artifacts]
