"""Tests for the interactive deck draft."""

import pytest
from conftest import make_card

from ygodeck.models.card import BanStatus, DeckSection
from ygodeck.models.deck import DeckEntry, SavedDeckCard
from ygodeck.models.failure import CardRejectedError, DeckValidationError, FailureKind
from ygodeck.rules import validate_deck
from ygodeck.services.deck_draft import DeckDraft


def fill_main(draft: DeckDraft, total: int, start_id: int = 1000) -> None:
    """Add `total` main deck copies, three per card."""
    for i in range(total):
        draft.add_card(make_card(start_id + i // 3))


class TestAddCard:
    def test_adds_to_main(self) -> None:
        draft = DeckDraft()

        item = draft.add_card(make_card(1, "Dark Magician", "Normal Monster"))

        assert item.count == 1
        assert draft.unique(DeckSection.MAIN) == 1
        assert draft.total(DeckSection.EXTRA) == 0

    @pytest.mark.parametrize(
        "card_type", ["Fusion Monster", "Synchro Monster", "XYZ Monster", "Link Monster"]
    )
    def test_extra_types_go_to_extra(self, card_type: str) -> None:
        draft = DeckDraft()

        draft.add_card(make_card(1, card_type=card_type))

        assert draft.total(DeckSection.EXTRA) == 1
        assert draft.main == []

    def test_increments_existing_entry(self) -> None:
        draft = DeckDraft()
        card = make_card(1)

        draft.add_card(card)
        draft.add_card(card)

        assert draft.unique(DeckSection.MAIN) == 1
        assert draft.main[0].count == 2

    def test_fourth_unlimited_copy_is_rejected(self) -> None:
        draft = DeckDraft()
        card = make_card(1, "Kuriboh")
        for _ in range(3):
            draft.add_card(card)

        with pytest.raises(CardRejectedError) as exc_info:
            draft.add_card(card)

        assert "3 copies" in exc_info.value.message
        assert "Kuriboh" in exc_info.value.message
        assert exc_info.value.kind is FailureKind.CARD_REJECTED
        assert draft.main[0].count == 3

    @pytest.mark.parametrize(
        ("status", "limit"),
        [(BanStatus.LIMITED, 1), (BanStatus.SEMI_LIMITED, 2)],
    )
    def test_banlist_limits(self, status: BanStatus, limit: int) -> None:
        draft = DeckDraft()
        card = make_card(1, "Monster Reborn", "Spell Card", ban_status=status)
        for _ in range(limit):
            draft.add_card(card)

        with pytest.raises(CardRejectedError) as exc_info:
            draft.add_card(card)

        assert f"{limit} copies" in exc_info.value.message
        assert status.value in exc_info.value.message

    def test_forbidden_rejected_without_override(self) -> None:
        draft = DeckDraft()
        card = make_card(1, "Pot of Greed", "Spell Card", ban_status=BanStatus.FORBIDDEN)

        with pytest.raises(CardRejectedError) as exc_info:
            draft.add_card(card)

        assert "Pot of Greed" in exc_info.value.message
        assert draft.main == []

    def test_forbidden_with_override_allows_three(self) -> None:
        draft = DeckDraft()
        assert draft.toggle_include_forbidden() is True
        card = make_card(1, "Pot of Greed", "Spell Card", ban_status=BanStatus.FORBIDDEN)
        for _ in range(3):
            draft.add_card(card)

        with pytest.raises(CardRejectedError):
            draft.add_card(card)

        assert draft.main[0].count == 3

    def test_main_deck_cap(self) -> None:
        draft = DeckDraft()
        fill_main(draft, 60)

        with pytest.raises(CardRejectedError) as exc_info:
            draft.add_card(make_card(9999))

        assert "Main deck limit of 60" in exc_info.value.message
        assert draft.total(DeckSection.MAIN) == 60

    def test_extra_deck_cap(self) -> None:
        draft = DeckDraft()
        for i in range(15):
            draft.add_card(make_card(3000 + i, card_type="Link Monster"))

        with pytest.raises(CardRejectedError) as exc_info:
            draft.add_card(make_card(4000, card_type="XYZ Monster"))

        assert "Extra deck limit of 15" in exc_info.value.message

    def test_gate_never_exceeds_limits(self) -> None:
        """No click order can push a count past its limit or a section past its cap."""
        draft = DeckDraft()
        cards = [
            make_card(1, ban_status=BanStatus.LIMITED),
            make_card(2, ban_status=BanStatus.SEMI_LIMITED),
            make_card(3),
            make_card(4, card_type="Fusion Monster"),
        ]
        for _ in range(30):
            for card in cards:
                try:
                    draft.add_card(card)
                except CardRejectedError:
                    pass

        counts = {item.id: item.count for item in (*draft.main, *draft.extra)}
        assert counts == {1: 1, 2: 2, 3: 3, 4: 3}


class TestRemoveCard:
    def test_decrements(self) -> None:
        draft = DeckDraft()
        card = make_card(1)
        draft.add_card(card)
        draft.add_card(card)

        draft.remove_card(1, DeckSection.MAIN)

        assert draft.main[0].count == 1

    def test_drops_last_copy(self) -> None:
        draft = DeckDraft()
        draft.add_card(make_card(1))

        draft.remove_card(1, DeckSection.MAIN)

        assert draft.main == []

    def test_missing_card_is_noop(self) -> None:
        draft = DeckDraft()
        draft.add_card(make_card(1))

        draft.remove_card(2, DeckSection.MAIN)
        draft.remove_card(1, DeckSection.EXTRA)

        assert draft.total(DeckSection.MAIN) == 1


class TestSave:
    def test_to_payload(self) -> None:
        draft = DeckDraft(name="Dragons")
        draft.add_card(make_card(1, "Blue-Eyes White Dragon", "Normal Monster"))
        draft.add_card(make_card(2, "Blue-Eyes Ultimate Dragon", "Fusion Monster"))

        payload = draft.to_payload()

        assert payload.main_deck == [DeckEntry(id=1, name="Blue-Eyes White Dragon", count=1)]
        assert payload.extra_deck == [DeckEntry(id=2, name="Blue-Eyes Ultimate Dragon", count=1)]
        assert payload.to_json()["extraDeck"] == [
            {"id": 2, "name": "Blue-Eyes Ultimate Dragon", "count": 1}
        ]

    def test_gate_built_deck_passes_validation(self) -> None:
        draft = DeckDraft(name="Gate Built")
        fill_main(draft, 40)
        for i in range(15):
            draft.add_card(make_card(3000 + i, card_type="Synchro Monster"))

        payload = draft.check_ready_to_save()

        assert validate_deck(payload.name, payload.main_deck, payload.extra_deck).ok

    def test_small_main_deck_blocks_save(self) -> None:
        draft = DeckDraft(name="Too Small")
        fill_main(draft, 39)

        with pytest.raises(DeckValidationError) as exc_info:
            draft.check_ready_to_save()

        assert "at least 40" in exc_info.value.message

    def test_forbidden_cards_block_save_without_override(self) -> None:
        draft = DeckDraft(name="Banned Stuff")
        draft.include_forbidden = True
        draft.add_card(make_card(1, "Pot of Greed", "Spell Card", ban_status=BanStatus.FORBIDDEN))
        fill_main(draft, 39)
        draft.include_forbidden = False

        with pytest.raises(DeckValidationError) as exc_info:
            draft.check_ready_to_save()

        assert "Pot of Greed" in exc_info.value.message

    def test_forbidden_cards_allowed_with_override(self) -> None:
        draft = DeckDraft(name="Banned Stuff", include_forbidden=True)
        draft.add_card(make_card(1, "Pot of Greed", "Spell Card", ban_status=BanStatus.FORBIDDEN))
        fill_main(draft, 39)

        payload = draft.check_ready_to_save()

        assert payload.main_deck[0].id == 1

    def test_bad_name_blocks_save(self) -> None:
        draft = DeckDraft(name="AB")
        fill_main(draft, 40)

        with pytest.raises(DeckValidationError) as exc_info:
            draft.check_ready_to_save()

        assert exc_info.value.details[0].path == "name"


class TestFromSaved:
    def test_rebuilds_sections_by_type(self) -> None:
        entries = [
            SavedDeckCard(id=1, card_api_id=10, copies=3, is_extra_deck=False),
            SavedDeckCard(id=2, card_api_id=20, copies=2, is_extra_deck=True),
        ]
        cards = {
            10: make_card(10, "Dark Magician", "Normal Monster"),
            20: make_card(20, "Dark Paladin", "Fusion Monster"),
        }

        draft = DeckDraft.from_saved("Magicians", entries, cards)

        assert draft.name == "Magicians"
        assert [(item.id, item.count) for item in draft.main] == [(10, 3)]
        assert [(item.id, item.count) for item in draft.extra] == [(20, 2)]
        assert draft.missing_card_ids == []
        assert draft.include_forbidden is False

    def test_skips_cards_that_could_not_be_loaded(self) -> None:
        entries = [
            SavedDeckCard(id=1, card_api_id=10, copies=1, is_extra_deck=False),
            SavedDeckCard(id=2, card_api_id=99, copies=1, is_extra_deck=False),
        ]

        draft = DeckDraft.from_saved("Partial", entries, {10: make_card(10)})

        assert draft.unique(DeckSection.MAIN) == 1
        assert draft.missing_card_ids == [99]
