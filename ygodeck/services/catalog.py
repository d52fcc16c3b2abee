"""
Card catalog service.

Translates card search filters into ygoprodeck queries, normalizes the
results and overlays the current TCG banlist onto them.

API docs: https://ygoprodeck.com/api-guide/
"""

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

import httpx
from cachetools import TTLCache

from ygodeck.config import settings
from ygodeck.models.card import BanStatus, Card, CardImage
from ygodeck.models.failure import InvalidFilterError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

USER_AGENT = "ygodeck/1.0"

PAGE_SIZE = 100
MIN_NAME_SEARCH_LENGTH = 3

SORT_TOKENS = frozenset({"asc", "desc"})

# Catalog placeholders for variable stats
STAT_X_VALUE = 9999

_DIGITS = re.compile(r"[0-9]+")
_LEADING_INT = re.compile(r"[+-]?[0-9]+")

# Status codes the catalog uses for "no card matches this query"
_EMPTY_RESULT_STATUSES = frozenset({400, 404})


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_stat_token(field: str, value: str | None) -> str | None:
    value = _blank_to_none(value)
    if value is None:
        return None
    if value.lower() in SORT_TOKENS:
        return value.lower()
    if _DIGITS.fullmatch(value):
        return value
    raise InvalidFilterError(field, f"{field} must be 'asc', 'desc' or a non-negative integer")


def _parse_non_negative(field: str, value: str | None, default: int | None) -> int | None:
    value = _blank_to_none(value)
    if value is None:
        return default
    if not _DIGITS.fullmatch(value):
        raise InvalidFilterError(field, f"{field} must be a non-negative integer")
    return int(value)


def _parse_page_size(value: str | None) -> int:
    num = _parse_non_negative("num", value, PAGE_SIZE)
    if num == 0:
        raise InvalidFilterError("num", "num must be a positive integer")
    return num


def _parse_ids(value: str | None) -> tuple[int, ...]:
    value = _blank_to_none(value)
    if value is None:
        return ()
    ids: list[int] = []
    for part in value.split(","):
        part = part.strip()
        if not _DIGITS.fullmatch(part) or int(part) <= 0:
            raise InvalidFilterError("id", "id must be a comma separated list of positive integers")
        ids.append(int(part))
    return tuple(ids)


@dataclass(frozen=True)
class CardQuery:
    """
    A validated card search request.

    Attributes:
        fname: Trimmed name substring as typed (may be too short to send)
        type: Card type label
        attribute: Monster attribute
        race: Monster race or spell/trap subtype
        level: Level/rank
        atk: "asc", "desc" or a minimum attack as a digit string
        defense: Same forms as atk
        offset: Result offset
        num: Page size
        ids: Explicit card ids to fetch
    """

    fname: str | None = None
    type: str | None = None
    attribute: str | None = None
    race: str | None = None
    level: int | None = None
    atk: str | None = None
    defense: str | None = None
    offset: int = 0
    num: int = PAGE_SIZE
    ids: tuple[int, ...] = ()

    @classmethod
    def parse(cls, params: Mapping[str, str | None]) -> "CardQuery":
        """
        Build a query from raw query-string values.

        Empty values count as absent. Raises InvalidFilterError for
        malformed tokens.
        """
        return cls(
            fname=_blank_to_none(params.get("fname")),
            type=_blank_to_none(params.get("type")),
            attribute=_blank_to_none(params.get("attribute")),
            race=_blank_to_none(params.get("race")),
            level=_parse_non_negative("level", params.get("level"), None),
            atk=_parse_stat_token("atk", params.get("atk")),
            defense=_parse_stat_token("def", params.get("def")),
            offset=_parse_non_negative("offset", params.get("offset"), 0),
            num=_parse_page_size(params.get("num")),
            ids=_parse_ids(params.get("id")),
        )

    @classmethod
    def for_page(cls, page: int, **filters: Any) -> "CardQuery":
        """Query for a zero-based result page of PAGE_SIZE cards."""
        if page < 0:
            raise InvalidFilterError("page", "page must be a non-negative integer")
        return cls(offset=page * PAGE_SIZE, num=PAGE_SIZE, **filters)

    @property
    def effective_name(self) -> str | None:
        """Name filter actually sent upstream. Short names are dropped."""
        if self.fname and len(self.fname) >= MIN_NAME_SEARCH_LENGTH:
            return self.fname
        return None

    def upstream_params(self) -> dict[str, str]:
        """Query string for the catalog. Sort tokens are applied locally."""
        params: dict[str, str] = {}
        optional = {
            "fname": self.effective_name,
            "type": self.type,
            "attribute": self.attribute,
            "race": self.race,
            "level": str(self.level) if self.level is not None else None,
        }
        params.update({key: value for key, value in optional.items() if value})

        for key, token in (("atk", self.atk), ("def", self.defense)):
            if token and token not in SORT_TOKENS:
                params[key] = f"gte{token}"

        if self.ids:
            params["id"] = ",".join(str(card_id) for card_id in self.ids)

        params["offset"] = str(self.offset)
        params["num"] = str(self.num)
        return params


def stat_value(raw: int | str | None) -> int:
    """
    Numeric value of an attack/defense stat for sorting and filtering.

    Absent stats and "?" count as 0, "X" as 9999. Otherwise the leading
    integer is used, so "1500abc" is 1500.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    text = str(raw).strip().upper()
    if text == "X":
        return STAT_X_VALUE
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else 0


def _apply_stat(cards: list[Card], token: str | None, attr: str) -> list[Card]:
    if not token:
        return cards
    if token == "asc":
        return sorted(cards, key=lambda card: stat_value(getattr(card, attr)))
    if token == "desc":
        return sorted(cards, key=lambda card: stat_value(getattr(card, attr)), reverse=True)
    minimum = int(token)
    return [card for card in cards if stat_value(getattr(card, attr)) >= minimum]


def apply_stat_filters(
    cards: Sequence[Card], atk: str | None = None, defense: str | None = None
) -> list[Card]:
    """Sort or filter cards by attack, then by defense. Sorts are stable."""
    result = _apply_stat(list(cards), atk, "atk")
    return _apply_stat(result, defense, "defense")


def _optional_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    return value if isinstance(value, str) and value else None


def _stat(raw: Mapping[str, Any], key: str) -> int | str | None:
    value = raw.get(key)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, str)):
        return value
    raise ValueError(f"unexpected {key} value: {value!r}")


def parse_catalog_card(raw: Any) -> Card:
    """
    Normalize one catalog card.

    Raises:
        ValueError: If required fields are missing or have the wrong type
    """
    if not isinstance(raw, Mapping):
        raise ValueError("card entry is not an object")

    card_id = raw.get("id")
    name = raw.get("name")
    card_type = raw.get("type")
    if not isinstance(card_id, int) or isinstance(card_id, bool):
        raise ValueError(f"card id must be an integer, got {card_id!r}")
    if not isinstance(name, str) or not isinstance(card_type, str):
        raise ValueError(f"card {card_id} is missing name or type")

    images = tuple(
        CardImage(
            id=image["id"],
            image_url=image["image_url"],
            image_url_small=image.get("image_url_small", image["image_url"]),
        )
        for image in raw.get("card_images") or []
    )

    banlist_info = raw.get("banlist_info")
    status = BanStatus.parse(
        banlist_info.get("ban_tcg") if isinstance(banlist_info, Mapping) else None
    )

    return Card(
        id=card_id,
        name=name,
        type=card_type,
        desc=raw.get("desc") or "",
        attribute=_optional_str(raw, "attribute"),
        race=_optional_str(raw, "race"),
        archetype=_optional_str(raw, "archetype"),
        level=_stat(raw, "level"),
        atk=_stat(raw, "atk"),
        defense=_stat(raw, "def"),
        ban_status=status,
        images=images,
    )


def parse_catalog_cards(rows: Iterable[Any]) -> list[Card]:
    """Normalize a list of catalog cards. Raises ValueError on bad rows."""
    try:
        return [parse_catalog_card(row) for row in rows]
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed card entry: {e}") from e


def merge_banlist(cards: Iterable[Card], banlist: Mapping[str, BanStatus]) -> list[Card]:
    """
    Overlay banlist statuses onto cards by exact name.

    Cards missing from the overlay keep the status the catalog gave them,
    which is Unlimited when the catalog gave none.
    """
    merged: list[Card] = []
    for card in cards:
        status = banlist.get(card.name)
        if status is not None and status is not card.ban_status:
            card = replace(card, ban_status=status)
        merged.append(card)
    return merged


def _data_rows(response: httpx.Response) -> list[Any]:
    try:
        body = response.json()
    except ValueError as e:
        raise UpstreamUnavailableError("catalog returned invalid JSON") from e
    rows = body.get("data") if isinstance(body, dict) else None
    if not isinstance(rows, list):
        raise UpstreamUnavailableError("catalog response has no data list")
    return rows


class CatalogClient:
    """
    Async client for the ygoprodeck card catalog.

    The banlist overlay is cached for settings.banlist_ttl_seconds so a
    burst of searches only fetches it once.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        banlist_ttl: float | None = None,
    ):
        self.base_url = base_url or settings.catalog_url
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            timeout=settings.catalog_timeout,
        )
        ttl = settings.banlist_ttl_seconds if banlist_ttl is None else banlist_ttl
        self._banlist_cache: TTLCache[str, dict[str, BanStatus]] = TTLCache(maxsize=1, ttl=ttl)

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, params: Mapping[str, str]) -> httpx.Response:
        try:
            return await self._client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"catalog request failed: {e}") from e

    @property
    def banlist_size(self) -> int | None:
        """Restricted cards in the cached overlay, None when nothing is cached."""
        cached = self._banlist_cache.get("tcg")
        return None if cached is None else len(cached)

    async def fetch_banlist(self) -> dict[str, BanStatus]:
        """
        Fetch the TCG banlist as {card name: status}, Unlimited cards omitted.

        A failed fetch degrades to an empty overlay so searches still work.
        """
        cached = self._banlist_cache.get("tcg")
        if cached is not None:
            return cached

        try:
            response = await self._get({"banlist": "tcg"})
            if response.status_code != 200:
                raise UpstreamUnavailableError(f"HTTP {response.status_code}")
            rows = _data_rows(response)
        except UpstreamUnavailableError as e:
            logger.warning("Failed to fetch banlist, continuing without it: %s", e.detail)
            return {}

        banlist: dict[str, BanStatus] = {}
        for row in rows:
            if not isinstance(row, Mapping) or not isinstance(row.get("name"), str):
                continue
            info = row.get("banlist_info")
            status = BanStatus.parse(info.get("ban_tcg") if isinstance(info, Mapping) else None)
            if status is not BanStatus.UNLIMITED:
                banlist[row["name"]] = status

        logger.info("Loaded banlist with %d restricted cards", len(banlist))
        self._banlist_cache["tcg"] = banlist
        return banlist

    async def search(self, query: CardQuery) -> list[Card]:
        """
        Search the catalog and return normalized, banlist-enriched cards.

        Returns an empty list when the catalog reports no match.

        Raises:
            UpstreamUnavailableError: On 5xx, transport errors or bad payloads
        """
        banlist = await self.fetch_banlist()

        response = await self._get(query.upstream_params())
        if response.status_code in _EMPTY_RESULT_STATUSES:
            return []
        if response.status_code != 200:
            logger.error("Catalog search failed with HTTP %d", response.status_code)
            raise UpstreamUnavailableError(f"catalog returned HTTP {response.status_code}")

        try:
            cards = parse_catalog_cards(_data_rows(response))
        except ValueError as e:
            logger.error("Catalog returned malformed cards: %s", e)
            raise UpstreamUnavailableError(str(e)) from e

        cards = merge_banlist(cards, banlist)
        return apply_stat_filters(cards, query.atk, query.defense)
