"""
Debounced card search scheduling.

A SearchScheduler belongs to one search session (one search panel). Every
change to the query calls schedule(), which waits for the user to stop
typing before calling the fetcher. Requests are suppressed when the same
query was sent moments ago or when a fresh cached result exists. Only one
fetch is in flight at a time; starting a new one cancels the previous one.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from ygodeck.models.card import Card
from ygodeck.models.failure import ApiClientError, ApiConnectionError, ApiRequestError
from ygodeck.services.catalog import MIN_NAME_SEARCH_LENGTH, PAGE_SIZE
from ygodeck.services.search_cache import SearchCache

logger = logging.getLogger(__name__)

# Debounce delays in seconds
FRESH_CACHE_DELAY = 0.8
STALE_CACHE_DELAY = 0.3
NAME_SEARCH_DELAY = 0.5
FILTER_DELAY = 0.3
DEFAULT_DELAY = 0.4

SAME_QUERY_WINDOW_SECONDS = 5.0

CACHED_RESULTS_NOTICE = "Using cached results (temporary connection error)"

Fetcher = Callable[["SearchQuery"], Awaitable[Sequence[Card]]]
ResultCallback = Callable[["SearchOutcome"], None]


@dataclass(frozen=True)
class SearchQuery:
    """The current state of the search controls."""

    name: str = ""
    card_type: str = ""
    attribute: str = ""
    race: str = ""
    level: str = ""
    atk: str = ""
    defense: str = ""
    page: int = 0

    @property
    def term(self) -> str:
        return self.name.strip()

    @property
    def cache_key(self) -> str:
        return "|".join(
            [
                self.term.lower(),
                self.card_type,
                self.attribute,
                self.race,
                self.level,
                self.atk,
                self.defense,
                str(self.page),
            ]
        )

    @property
    def has_filters(self) -> bool:
        """True if any control other than the name is set."""
        filters = (self.card_type, self.attribute, self.race, self.level, self.atk, self.defense)
        return any(value.strip() for value in filters)

    @property
    def is_eligible(self) -> bool:
        """A one or two letter name on its own is not worth a request."""
        return not self.term or len(self.term) >= MIN_NAME_SEARCH_LENGTH or self.has_filters

    def to_params(self) -> dict[str, str]:
        """Query parameters for GET /cards."""
        values = {
            "fname": self.term,
            "type": self.card_type.strip(),
            "attribute": self.attribute.strip(),
            "race": self.race.strip(),
            "level": self.level.strip(),
            "atk": self.atk.strip(),
            "def": self.defense.strip(),
        }
        params = {key: value for key, value in values.items() if value}
        params["offset"] = str(self.page * PAGE_SIZE)
        params["num"] = str(PAGE_SIZE)
        return params


class SearchErrorCategory(str, Enum):
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    CONNECTIVITY = "connectivity"
    UNKNOWN = "unknown"


_ERROR_MESSAGES: dict[SearchErrorCategory, str] = {
    SearchErrorCategory.NOT_FOUND: "No cards found. Try other search terms.",
    SearchErrorCategory.SERVER_ERROR: "Server error. Please try again later.",
    SearchErrorCategory.CONNECTIVITY: "Connection error. Check your internet connection.",
    SearchErrorCategory.UNKNOWN: "Error fetching cards. Please try again.",
}


def categorize_error(error: ApiClientError) -> SearchErrorCategory:
    """Map a failed search request to what the user is told."""
    if isinstance(error, ApiConnectionError):
        return SearchErrorCategory.CONNECTIVITY
    if isinstance(error, ApiRequestError):
        if error.status_code in (400, 404):
            return SearchErrorCategory.NOT_FOUND
        if error.status_code >= 500:
            return SearchErrorCategory.SERVER_ERROR
    return SearchErrorCategory.UNKNOWN


@dataclass(frozen=True)
class SearchOutcome:
    """
    What the search panel should display after a scheduling step.

    Attributes:
        query: Query the outcome belongs to
        cards: Cards to show
        from_cache: Cards came from the cache rather than a new request
        skipped: No request was made (suppressed duplicate or fresh cache)
        cancelled: A newer request superseded this one; display nothing
        notice: Soft warning shown next to cached results
        error: Failure category when the request failed
        message: Human readable error when there is nothing to show
    """

    query: SearchQuery
    cards: list[Card] = field(default_factory=list)
    from_cache: bool = False
    skipped: bool = False
    cancelled: bool = False
    notice: str | None = None
    error: SearchErrorCategory | None = None
    message: str | None = None


def debounce_delay(query: SearchQuery, cache: SearchCache) -> float:
    """
    Seconds to wait after the last change before searching.

    A fresh cached result is shown immediately, so the follow-up request
    can wait longer. A name being typed waits longer than a filter click.
    """
    entry = cache.get(query.cache_key)
    if entry is not None:
        return FRESH_CACHE_DELAY if cache.is_fresh(entry) else STALE_CACHE_DELAY
    if len(query.term) >= MIN_NAME_SEARCH_LENGTH:
        return NAME_SEARCH_DELAY
    if query.has_filters:
        return FILTER_DELAY
    return DEFAULT_DELAY


class SearchScheduler:
    """
    Debounce, deduplicate and dispatch card searches for one session.

    Must be used from inside a running event loop.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        cache: SearchCache | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_result: ResultCallback | None = None,
        dedupe_window: float = SAME_QUERY_WINDOW_SECONDS,
    ):
        self._fetcher = fetcher
        self.cache = cache if cache is not None else SearchCache(clock=clock)
        self._clock = clock
        self._on_result = on_result
        self.dedupe_window = dedupe_window

        self._timer: asyncio.Task[SearchOutcome] | None = None
        self._inflight: asyncio.Future[Sequence[Card]] | None = None
        self._inflight_key: str | None = None
        self._last_key: str | None = None
        self._last_issued_at: float | None = None

    @property
    def pending(self) -> bool:
        """True while a debounce timer is armed."""
        return self._timer is not None and not self._timer.done()

    def _publish(self, outcome: SearchOutcome) -> SearchOutcome:
        if self._on_result is not None and not outcome.cancelled:
            self._on_result(outcome)
        return outcome

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _forget_request(self, key: str | None) -> None:
        # A request that never completed does not suppress a retry
        if key is not None and key == self._last_key:
            self._last_key = None
            self._last_issued_at = None

    def _cancel_inflight(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            self._forget_request(self._inflight_key)
        self._inflight = None
        self._inflight_key = None

    def schedule(self, query: SearchQuery) -> asyncio.Task[SearchOutcome] | None:
        """
        React to a change of the search controls.

        Cancels any pending timer, and the in-flight request when it was for
        a different query. Fresh cached results are published right away;
        the request itself is deferred by debounce_delay(). Returns the
        timer task, or None when the query is not eligible.
        """
        self._cancel_timer()
        if self._inflight_key != query.cache_key:
            self._cancel_inflight()

        if not query.is_eligible:
            self._publish(SearchOutcome(query=query))
            return None

        delay = debounce_delay(query, self.cache)
        fresh = self.cache.get_fresh(query.cache_key)
        if fresh is not None:
            self._publish(SearchOutcome(query=query, cards=list(fresh.cards), from_cache=True))

        self._timer = asyncio.create_task(self._fire(query, delay, shown=fresh is not None))
        return self._timer

    async def _fire(self, query: SearchQuery, delay: float, shown: bool) -> SearchOutcome:
        await asyncio.sleep(delay)
        return await self._fetch(query, force=False, publish_skipped=not shown)

    def should_fetch(self, query: SearchQuery, force: bool = False) -> bool:
        """
        Decide whether a request for query is actually sent.

        Ineligible queries never are. A forced refresh always is. Otherwise
        the same query sent within dedupe_window, or a fresh cache entry,
        suppresses the request.
        """
        if not query.is_eligible:
            return False
        if force:
            return True

        key = query.cache_key
        if (
            key == self._last_key
            and self._last_issued_at is not None
            and self._clock() - self._last_issued_at < self.dedupe_window
        ):
            return False
        return self.cache.get_fresh(key) is None

    async def fetch(self, query: SearchQuery, force: bool = False) -> SearchOutcome:
        """
        Send the search now, unless should_fetch() says otherwise.

        A superseded request yields an outcome with cancelled=True, which is
        never published.
        """
        return await self._fetch(query, force=force, publish_skipped=True)

    async def _fetch(self, query: SearchQuery, force: bool, publish_skipped: bool) -> SearchOutcome:
        if not query.is_eligible:
            return self._publish(SearchOutcome(query=query))

        key = query.cache_key
        if not self.should_fetch(query, force=force):
            cached = self.cache.get(key)
            outcome = SearchOutcome(
                query=query,
                cards=list(cached.cards) if cached else [],
                from_cache=cached is not None,
                skipped=True,
            )
            if publish_skipped and cached is not None and cached.cards:
                self._publish(outcome)
            return outcome

        self._cancel_inflight()
        self._last_key = key
        self._last_issued_at = self._clock()

        request = asyncio.ensure_future(self._fetcher(query))
        self._inflight = request
        self._inflight_key = key
        try:
            cards = await request
        except asyncio.CancelledError:
            if self._inflight is request:
                # The waiting task itself was cancelled
                self._inflight = None
                self._inflight_key = None
                self._forget_request(key)
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return SearchOutcome(query=query, cancelled=True)
        except ApiClientError as e:
            if self._inflight is not request:
                return SearchOutcome(query=query, cancelled=True)
            self._inflight = None
            self._inflight_key = None
            return self._publish(self._failure_outcome(query, e))

        if self._inflight is not request:
            # Finished just as a newer request replaced it
            return SearchOutcome(query=query, cancelled=True)
        self._inflight = None
        self._inflight_key = None

        cards = list(cards)
        self.cache.set(key, cards)
        return self._publish(SearchOutcome(query=query, cards=cards))

    def _failure_outcome(self, query: SearchQuery, error: ApiClientError) -> SearchOutcome:
        category = categorize_error(error)
        logger.warning("Card search failed (%s): %s", category.value, error)

        cached = self.cache.get(query.cache_key)
        if cached is not None and cached.cards:
            return SearchOutcome(
                query=query,
                cards=list(cached.cards),
                from_cache=True,
                notice=CACHED_RESULTS_NOTICE,
                error=category,
            )
        return SearchOutcome(query=query, error=category, message=_ERROR_MESSAGES[category])

    async def refresh(self, query: SearchQuery) -> SearchOutcome:
        """Explicit retry by the user. Bypasses deduplication and the cache."""
        self._cancel_timer()
        return await self.fetch(query, force=True)

    async def aclose(self) -> None:
        """Cancel the pending timer and any in-flight request."""
        tasks = [task for task in (self._timer, self._inflight) if task is not None]
        self._cancel_timer()
        self._cancel_inflight()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
