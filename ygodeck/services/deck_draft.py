"""
Interactive deck draft.

Holds the deck being built in the editor and gates every add so that the
draft can never exceed a banlist copy limit or a section cap. The gate
uses the same thresholds as rules.validate_deck, so a draft built only
through add_card() passes server validation.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from ygodeck.models.card import Card, DeckSection
from ygodeck.models.deck import DeckEntry, DeckSavePayload, SavedDeckCard
from ygodeck.models.failure import CardRejectedError, DeckValidationError, FieldError
from ygodeck.rules import MIN_MAIN_DECK, copy_limit, section_cap, section_for_type, validate_deck

logger = logging.getLogger(__name__)

DEFAULT_DECK_NAME = "New Deck"


@dataclass
class DeckCardItem:
    """A card in the draft with its running copy count."""

    card: Card
    count: int = 1

    @property
    def id(self) -> int:
        return self.card.id

    def to_entry(self) -> DeckEntry:
        return DeckEntry(id=self.card.id, name=self.card.name, count=self.count)


@dataclass
class DeckDraft:
    """
    Deck under construction.

    Attributes:
        name: Deck name
        include_forbidden: Allow Forbidden cards (up to the normal 3 copies)
        main: Main deck items in insertion order
        extra: Extra deck items in insertion order
        missing_card_ids: Saved card ids that could not be loaded
    """

    name: str = DEFAULT_DECK_NAME
    include_forbidden: bool = False
    main: list[DeckCardItem] = field(default_factory=list)
    extra: list[DeckCardItem] = field(default_factory=list)
    missing_card_ids: list[int] = field(default_factory=list)

    def items(self, section: DeckSection) -> list[DeckCardItem]:
        return self.main if section is DeckSection.MAIN else self.extra

    def total(self, section: DeckSection) -> int:
        """Total copies in a section."""
        return sum(item.count for item in self.items(section))

    def unique(self, section: DeckSection) -> int:
        """Distinct cards in a section."""
        return len(self.items(section))

    def find(self, card_id: int, section: DeckSection) -> DeckCardItem | None:
        for item in self.items(section):
            if item.id == card_id:
                return item
        return None

    def copy_limit(self, card: Card) -> int:
        return copy_limit(card.ban_status, self.include_forbidden)

    def toggle_include_forbidden(self) -> bool:
        """Flip the forbidden-cards override. Returns the new value."""
        self.include_forbidden = not self.include_forbidden
        return self.include_forbidden

    def add_card(self, card: Card) -> DeckCardItem:
        """
        Add one copy of card to the section its type belongs to.

        Returns the updated item.

        Raises:
            CardRejectedError: If the card is Forbidden without the override,
                the section is full, or the card is at its copy limit. The
                draft is unchanged.
        """
        if card.is_forbidden and not self.include_forbidden:
            raise CardRejectedError(
                card.name,
                f'"{card.name}" is Forbidden. Enable forbidden cards to add it to the deck.',
            )

        section = section_for_type(card.type)
        cap = section_cap(section)
        if self.total(section) >= cap:
            raise CardRejectedError(
                card.name, f"{section.label} deck limit of {cap} cards reached."
            )

        limit = self.copy_limit(card)
        existing = self.find(card.id, section)
        if existing is not None and existing.count >= limit:
            raise CardRejectedError(
                card.name,
                f'Limit of {limit} copies reached for "{card.name}" ({card.ban_status.value}).',
            )

        if existing is not None:
            existing.count += 1
            return existing

        item = DeckCardItem(card=card)
        self.items(section).append(item)
        return item

    def remove_card(self, card_id: int, section: DeckSection) -> None:
        """Remove one copy. Removing a card that is not there does nothing."""
        items = self.items(section)
        existing = self.find(card_id, section)
        if existing is None:
            return
        if existing.count > 1:
            existing.count -= 1
        else:
            items.remove(existing)

    def forbidden_cards(self) -> list[DeckCardItem]:
        return [item for item in (*self.main, *self.extra) if item.card.is_forbidden]

    def to_payload(self) -> DeckSavePayload:
        return DeckSavePayload(
            name=self.name,
            main_deck=[item.to_entry() for item in self.main],
            extra_deck=[item.to_entry() for item in self.extra],
        )

    def check_ready_to_save(self) -> DeckSavePayload:
        """
        Run the pre-save checks and return the payload to submit.

        Raises:
            DeckValidationError: If the main deck is too small, forbidden
                cards are present without the override, or the payload
                breaks a deck rule
        """
        main_total = self.total(DeckSection.MAIN)
        if main_total < MIN_MAIN_DECK:
            message = f"The main deck must have at least {MIN_MAIN_DECK} cards."
            raise DeckValidationError(message, [FieldError(path="mainDeck", message=message)])

        if not self.include_forbidden:
            forbidden = self.forbidden_cards()
            if forbidden:
                names = ", ".join(item.card.name for item in forbidden)
                message = (
                    f"The deck contains Forbidden cards: {names}. "
                    "Enable forbidden cards to save it."
                )
                raise DeckValidationError(message)

        payload = self.to_payload()
        validate_deck(payload.name, payload.main_deck, payload.extra_deck).raise_for_violations()
        return payload

    @classmethod
    def from_saved(
        cls,
        deck_name: str,
        entries: Sequence[SavedDeckCard],
        cards_by_id: Mapping[int, Card],
    ) -> "DeckDraft":
        """
        Rebuild a draft for editing a saved deck.

        Saved decks only hold card ids, so the caller passes the re-fetched
        cards. Entries without a card are skipped and listed in
        missing_card_ids. Sections are decided by card type, as in add_card().
        """
        draft = cls(name=deck_name)
        for entry in entries:
            card = cards_by_id.get(entry.card_api_id)
            if card is None:
                draft.missing_card_ids.append(entry.card_api_id)
                continue
            section = section_for_type(card.type)
            existing = draft.find(card.id, section)
            if existing is not None:
                existing.count += entry.copies
            else:
                draft.items(section).append(DeckCardItem(card=card, count=entry.copies))

        if draft.missing_card_ids:
            logger.warning(
                "Could not load %d cards of deck %r: %s",
                len(draft.missing_card_ids),
                deck_name,
                draft.missing_card_ids,
            )
        return draft
