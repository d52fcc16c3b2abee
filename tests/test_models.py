"""Tests for domain models and failure types."""

from datetime import UTC, datetime

import pytest

from ygodeck.models.card import BanStatus, Card, CardImage, DeckSection
from ygodeck.models.deck import DeckEntry, DeckSavePayload, SavedDeck, SavedDeckCard
from ygodeck.models.failure import (
    ConflictError,
    DeckNotFoundError,
    FailureKind,
    FieldError,
    InvalidFilterError,
    UpstreamUnavailableError,
)


class TestBanStatus:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Forbidden", BanStatus.FORBIDDEN),
            ("Limited", BanStatus.LIMITED),
            ("Semi-Limited", BanStatus.SEMI_LIMITED),
            ("Unlimited", BanStatus.UNLIMITED),
            (None, BanStatus.UNLIMITED),
            ("Banned", BanStatus.UNLIMITED),
        ],
    )
    def test_parse(self, raw: str | None, expected: BanStatus) -> None:
        assert BanStatus.parse(raw) is expected


class TestCard:
    def test_to_catalog_dict_omits_missing_stats(self) -> None:
        card = Card(id=1, name="Raigeki", type="Spell Card", race="Normal")

        data = card.to_catalog_dict()

        assert "atk" not in data
        assert "def" not in data
        assert data["race"] == "Normal"
        assert data["banlist_info"] == {"ban_tcg": "Unlimited"}

    def test_to_catalog_dict_uses_def_key(self) -> None:
        card = Card(
            id=2,
            name="Gaia",
            type="Normal Monster",
            atk=2300,
            defense=2100,
            images=(CardImage(id=2, image_url="a.jpg", image_url_small="b.jpg"),),
        )

        data = card.to_catalog_dict()

        assert data["def"] == 2100
        assert data["card_images"][0]["image_url_small"] == "b.jpg"

    def test_section_labels(self) -> None:
        assert DeckSection.MAIN.label == "Main"
        assert DeckSection.EXTRA.label == "Extra"


class TestSavedDeck:
    def test_section_totals(self) -> None:
        deck = SavedDeck(
            id=1,
            name="Mixed",
            user_id=1,
            created_at=datetime.now(UTC),
            cards=[
                SavedDeckCard(id=1, card_api_id=10, copies=3, is_extra_deck=False),
                SavedDeckCard(id=2, card_api_id=11, copies=2, is_extra_deck=False),
                SavedDeckCard(id=3, card_api_id=20, copies=1, is_extra_deck=True),
            ],
        )

        assert deck.main_deck_count() == 5
        assert deck.main_deck_unique() == 2
        assert deck.extra_deck_count() == 1
        assert deck.extra_deck_unique() == 1

    def test_payload_json_is_camel_case(self) -> None:
        payload = DeckSavePayload(name="Deck", main_deck=[DeckEntry(id=1, name="A", count=2)])

        assert payload.to_json() == {
            "name": "Deck",
            "mainDeck": [{"id": 1, "name": "A", "count": 2}],
            "extraDeck": [],
        }


class TestFailures:
    def test_status_codes(self) -> None:
        assert ConflictError("dup").status_code == 409
        assert DeckNotFoundError().status_code == 404
        assert UpstreamUnavailableError().status_code == 502

    def test_invalid_filter_response(self) -> None:
        response = InvalidFilterError("atk", "atk must be a number").to_response()

        assert response.kind is FailureKind.INVALID_FILTER
        assert response.details == [FieldError(path="atk", message="atk must be a number")]

    def test_upstream_detail_is_not_in_response(self) -> None:
        error = UpstreamUnavailableError("catalog returned HTTP 503")

        body = error.to_response().model_dump()

        assert "503" not in body["error"]
