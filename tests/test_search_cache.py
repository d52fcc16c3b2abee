"""Tests for the search result cache."""

from conftest import make_card

from ygodeck.services.search_cache import SearchCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestSearchCache:
    def test_set_and_get(self) -> None:
        cache = SearchCache(clock=FakeClock())
        cards = [make_card(1), make_card(2)]

        cache.set("dark magician||||||0", cards)

        entry = cache.get("dark magician||||||0")
        assert entry is not None
        assert entry.cards == cards
        assert entry.search_count == 1
        assert "dark magician||||||0" in cache
        assert len(cache) == 1

    def test_missing_key(self) -> None:
        cache = SearchCache(clock=FakeClock())

        assert cache.get("nope") is None
        assert cache.get_fresh("nope") is None

    def test_entry_expires_after_ttl(self) -> None:
        clock = FakeClock()
        cache = SearchCache(ttl=120, clock=clock)
        cache.set("key", [make_card(1)])

        clock.advance(119)
        assert cache.get_fresh("key") is not None

        clock.advance(1)
        assert cache.get_fresh("key") is None
        # Stale entries stay available as a fallback
        assert cache.get("key") is not None

    def test_repeat_searches_are_counted(self) -> None:
        cache = SearchCache(clock=FakeClock())

        for _ in range(3):
            cache.set("key", [])

        entry = cache.get("key")
        assert entry is not None
        assert entry.search_count == 3

    def test_hot_keys_use_short_ttl(self) -> None:
        clock = FakeClock()
        cache = SearchCache(ttl=120, short_ttl=30, hot_threshold=3, clock=clock)
        for _ in range(4):
            cache.set("key", [])

        entry = cache.get("key")
        assert entry is not None
        assert cache.ttl_for(entry) == 30

        clock.advance(31)
        assert cache.get_fresh("key") is None

    def test_threshold_is_exclusive(self) -> None:
        cache = SearchCache(ttl=120, short_ttl=30, hot_threshold=3, clock=FakeClock())
        for _ in range(3):
            cache.set("key", [])

        entry = cache.get("key")
        assert entry is not None
        assert cache.ttl_for(entry) == 120

    def test_evicts_least_recently_fetched(self) -> None:
        clock = FakeClock()
        cache = SearchCache(max_entries=2, clock=clock)
        cache.set("a", [])
        clock.advance(1)
        cache.set("b", [])
        clock.advance(1)
        cache.set("a", [])
        clock.advance(1)

        cache.set("c", [])

        assert len(cache) == 2
        assert "b" not in cache
        assert "a" in cache
        assert "c" in cache

    def test_evict_oldest_on_empty_cache(self) -> None:
        assert SearchCache(clock=FakeClock()).evict_oldest() is None

    def test_clear(self) -> None:
        cache = SearchCache(clock=FakeClock())
        cache.set("a", [])

        cache.clear()

        assert len(cache) == 0
