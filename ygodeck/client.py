"""
Async client for the deck builder REST API.

Used by interactive front ends: SearchScheduler takes search_cards as its
fetcher, and DeckDraft payloads are submitted through create_deck and
update_deck.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from ygodeck.models.card import Card
from ygodeck.models.deck import DeckSavePayload
from ygodeck.models.failure import (
    ApiConnectionError,
    ApiRequestError,
    ApiResponseError,
    FieldError,
)
from ygodeck.services.catalog import parse_catalog_cards
from ygodeck.services.search_scheduler import SearchQuery

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 8.0


def _error_from_response(response: httpx.Response) -> ApiRequestError:
    message = response.reason_phrase or "Request failed"
    details: list[FieldError] = []
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        if isinstance(body.get("error"), str):
            message = body["error"]
        for item in body.get("details") or []:
            if isinstance(item, dict):
                details.append(
                    FieldError(path=str(item.get("path", "")), message=str(item.get("message", "")))
                )
    return ApiRequestError(response.status_code, message, details)


class DeckBuilderClient:
    """
    Thin wrapper over httpx.AsyncClient for the deck builder API.

    Non-2xx responses raise ApiRequestError. Requests that never get a
    response raise ApiConnectionError.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "DeckBuilderClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        if self.token is None:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, url, json=json, params=params, headers=self._headers()
            )
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise ApiConnectionError(str(e)) from e

        if response.is_error:
            raise _error_from_response(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiResponseError(response.status_code, "Response body is not JSON") from e

    async def _get_cards(self, params: Mapping[str, str]) -> list[Card]:
        body = await self._request("GET", "/cards", params=params)
        if body is None:
            return []
        if not isinstance(body, list):
            raise ApiResponseError(200, "Expected a list of cards")
        try:
            return parse_catalog_cards(body)
        except ValueError as e:
            raise ApiResponseError(200, f"Malformed card data: {e}") from e

    # --- Auth ---

    async def register(self, username: str, email: str, password: str) -> dict[str, Any]:
        """Create an account and keep its token for later requests."""
        body = await self._request(
            "POST",
            "/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        self.token = body["token"]
        return body

    async def login(self, identifier: str, password: str) -> dict[str, Any]:
        """Log in by email or username and keep the token for later requests."""
        body = await self._request(
            "POST", "/auth/login", json={"identifier": identifier, "password": password}
        )
        self.token = body["token"]
        return body

    # --- Cards ---

    async def search_cards(self, query: SearchQuery | Mapping[str, str]) -> list[Card]:
        """Search cards. Accepts a SearchQuery or raw GET /cards parameters."""
        params = query.to_params() if isinstance(query, SearchQuery) else dict(query)
        return await self._get_cards(params)

    async def get_cards_by_ids(self, card_ids: Iterable[int]) -> dict[int, Card]:
        """Fetch cards by id, keyed by id. Used to render saved decks."""
        unique_ids = list(dict.fromkeys(card_ids))
        if not unique_ids:
            return {}
        cards = await self._get_cards({"id": ",".join(str(card_id) for card_id in unique_ids)})
        return {card.id: card for card in cards}

    # --- Decks ---

    async def list_decks(self) -> list[dict[str, Any]]:
        body = await self._request("GET", "/decks")
        return body["decks"]

    async def get_deck(self, deck_id: int) -> dict[str, Any]:
        body = await self._request("GET", f"/decks/{deck_id}")
        return body["deck"]

    async def create_deck(self, payload: DeckSavePayload) -> dict[str, Any]:
        body = await self._request("POST", "/decks", json=payload.to_json())
        return body["deck"]

    async def update_deck(self, deck_id: int, payload: DeckSavePayload) -> dict[str, Any]:
        body = await self._request("PUT", f"/decks/{deck_id}", json=payload.to_json())
        return body["deck"]

    async def delete_deck(self, deck_id: int) -> None:
        await self._request("DELETE", f"/decks/{deck_id}")
