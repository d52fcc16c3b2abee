from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ygodeck.models.card import DeckSection


@dataclass(frozen=True, slots=True)
class DeckEntry:
    """
    One line of a deck save payload.

    Attributes:
        id: Catalog card id
        name: Card name (informational, not persisted)
        count: Number of copies (1-3)
    """

    id: int
    name: str
    count: int

    def as_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "count": self.count}


@dataclass
class DeckSavePayload:
    """A whole deck as submitted on save: name plus both sections."""

    name: str
    main_deck: list[DeckEntry] = field(default_factory=list)
    extra_deck: list[DeckEntry] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        """Request body in the REST API's camelCase shape."""
        return {
            "name": self.name,
            "mainDeck": [entry.as_dict() for entry in self.main_deck],
            "extraDeck": [entry.as_dict() for entry in self.extra_deck],
        }


@dataclass(frozen=True, slots=True)
class SavedDeckCard:
    """A persisted card reference. No card metadata is stored."""

    id: int
    card_api_id: int
    copies: int
    is_extra_deck: bool

    @property
    def section(self) -> DeckSection:
        return DeckSection.EXTRA if self.is_extra_deck else DeckSection.MAIN


@dataclass
class SavedDeck:
    """A deck as stored for its owner."""

    id: int
    name: str
    user_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    cards: list[SavedDeckCard] = field(default_factory=list)

    def section_cards(self, section: DeckSection) -> list[SavedDeckCard]:
        return [card for card in self.cards if card.section is section]

    def main_deck_count(self) -> int:
        """Total copies in the main deck."""
        return sum(card.copies for card in self.section_cards(DeckSection.MAIN))

    def extra_deck_count(self) -> int:
        """Total copies in the extra deck."""
        return sum(card.copies for card in self.section_cards(DeckSection.EXTRA))

    def main_deck_unique(self) -> int:
        return len(self.section_cards(DeckSection.MAIN))

    def extra_deck_unique(self) -> int:
        return len(self.section_cards(DeckSection.EXTRA))
