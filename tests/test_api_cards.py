"""Tests for the card search endpoint."""

import httpx
import pytest
import respx
from conftest import CATALOG_URL, catalog_card
from httpx import AsyncClient

BANLIST = {"data": [catalog_card(55144522, "Pot of Greed", "Spell Card", ban_tcg="Forbidden")]}


def mock_banlist() -> None:
    respx.get(CATALOG_URL, params={"banlist": "tcg"}).mock(
        return_value=httpx.Response(200, json=BANLIST)
    )


class TestSearchCards:
    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_enriched_cards(self, client: AsyncClient) -> None:
        mock_banlist()
        respx.get(CATALOG_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        catalog_card(55144522, "Pot of Greed", "Spell Card"),
                        catalog_card(89631139, "Blue-Eyes White Dragon", "Normal Monster"),
                    ]
                },
            )
        )

        response = await client.get("/cards", params={"fname": "pot"})

        assert response.status_code == 200
        cards = response.json()
        assert [card["name"] for card in cards] == ["Pot of Greed", "Blue-Eyes White Dragon"]
        assert cards[0]["banlist_info"] == {"ban_tcg": "Forbidden"}
        assert cards[1]["banlist_info"] == {"ban_tcg": "Unlimited"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_orders_by_attack(self, client: AsyncClient) -> None:
        mock_banlist()
        respx.get(CATALOG_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        catalog_card(1, "Thousand", atk=1000, **{"def": 1000}),
                        catalog_card(2, "Five Hundred", atk=500, **{"def": 500}),
                        catalog_card(3, "Two Thousand", atk=2000, **{"def": 2000}),
                    ]
                },
            )
        )

        response = await client.get("/cards", params={"atk": "asc"})

        assert [card["atk"] for card in response.json()] == [500, 1000, 2000]

    @pytest.mark.asyncio
    @respx.mock
    async def test_upstream_not_found_is_empty(self, client: AsyncClient) -> None:
        mock_banlist()
        respx.get(CATALOG_URL).mock(
            return_value=httpx.Response(
                404, json={"error": "No card matching your query was found in the database."}
            )
        )

        response = await client.get("/cards", params={"fname": "Nonexistent Card"})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_upstream_failure_is_502(self, client: AsyncClient) -> None:
        mock_banlist()
        respx.get(CATALOG_URL).mock(return_value=httpx.Response(500))

        response = await client.get("/cards", params={"fname": "Kuriboh"})

        assert response.status_code == 502
        assert response.json()["kind"] == "upstream_unavailable"

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_filters_returns_first_page(self, client: AsyncClient) -> None:
        mock_banlist()
        route = respx.get(CATALOG_URL).mock(
            return_value=httpx.Response(200, json={"data": [catalog_card(1, "Anything")]})
        )

        response = await client.get("/cards")

        assert response.status_code == 200
        params = route.calls.last.request.url.params
        assert params["offset"] == "0"
        assert params["num"] == "100"
        assert "fname" not in params

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_by_ids(self, client: AsyncClient) -> None:
        mock_banlist()
        route = respx.get(CATALOG_URL).mock(
            return_value=httpx.Response(
                200, json={"data": [catalog_card(46986414, "Dark Magician", "Normal Monster")]}
            )
        )

        response = await client.get("/cards", params={"id": "46986414"})

        assert response.status_code == 200
        assert route.calls.last.request.url.params["id"] == "46986414"

    @pytest.mark.asyncio
    async def test_invalid_stat_token(self, client: AsyncClient) -> None:
        response = await client.get("/cards", params={"atk": "strongest"})

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "invalid_filter"
        assert data["details"][0]["path"] == "atk"

    @pytest.mark.asyncio
    async def test_invalid_defense_token(self, client: AsyncClient) -> None:
        response = await client.get("/cards", params={"def": "1,000"})

        assert response.status_code == 400
        assert response.json()["details"][0]["path"] == "def"
