"""
Per-session search result cache.

Entries expire after a base TTL. Keys that keep getting searched switch to
a shorter TTL so that frequently viewed results (banlist changes in
particular) are refreshed sooner. The cache is bounded and evicts the
least recently fetched entry first.
"""

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ygodeck.models.card import Card

DEFAULT_TTL_SECONDS = 120.0
SHORT_TTL_SECONDS = 30.0
HOT_SEARCH_THRESHOLD = 3
MAX_ENTRIES = 100


@dataclass
class CacheEntry:
    cards: list[Card]
    fetched_at: float
    search_count: int = 1


class SearchCache:
    """
    Search results keyed by query cache key.

    The clock is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        short_ttl: float = SHORT_TTL_SECONDS,
        hot_threshold: int = HOT_SEARCH_THRESHOLD,
        max_entries: int = MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.short_ttl = short_ttl
        self.hot_threshold = hot_threshold
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def ttl_for(self, entry: CacheEntry) -> float:
        if entry.search_count > self.hot_threshold:
            return self.short_ttl
        return self.ttl

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.fetched_at < self.ttl_for(entry)

    def get(self, key: str) -> CacheEntry | None:
        """Entry for key regardless of age."""
        return self._entries.get(key)

    def get_fresh(self, key: str) -> CacheEntry | None:
        """Entry for key only if it has not expired."""
        entry = self._entries.get(key)
        if entry is not None and self.is_fresh(entry):
            return entry
        return None

    def set(self, key: str, cards: Sequence[Card]) -> CacheEntry:
        """Store results for key, counting repeat searches of the same key."""
        previous = self._entries.get(key)
        entry = CacheEntry(
            cards=list(cards),
            fetched_at=self._clock(),
            search_count=previous.search_count + 1 if previous else 1,
        )
        self._entries[key] = entry
        while len(self._entries) > self.max_entries:
            self.evict_oldest()
        return entry

    def evict_oldest(self) -> str | None:
        """Drop the least recently fetched entry. Returns its key."""
        if not self._entries:
            return None
        oldest = min(self._entries, key=lambda key: self._entries[key].fetched_at)
        del self._entries[oldest]
        return oldest

    def clear(self) -> None:
        self._entries.clear()
