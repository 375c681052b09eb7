"""Tests for the TTL cache."""

from quakefeed.cache import TTLCache


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestTTLCache:
    """Tests for expiry and basic operations."""

    def test_miss_returns_none(self):
        assert TTLCache(300).get("tmd") is None

    def test_fresh_entry_is_returned(self):
        clock = FakeClock()
        cache = TTLCache(300, clock=clock)

        cache.set("tmd", ["record"])
        clock.advance(299.9)

        assert cache.get("tmd") == ["record"]

    def test_entry_expires_at_ttl(self):
        clock = FakeClock()
        cache = TTLCache(300, clock=clock)

        cache.set("tmd", ["record"])
        clock.advance(300)

        assert cache.get("tmd") is None
        assert len(cache) == 0

    def test_set_replaces_and_restarts_lifetime(self):
        clock = FakeClock()
        cache = TTLCache(300, clock=clock)

        cache.set("usgs", "old")
        clock.advance(200)
        cache.set("usgs", "new")
        clock.advance(200)

        assert cache.get("usgs") == "new"

    def test_empty_list_is_a_hit(self):
        cache = TTLCache(300)
        cache.set("combined", [])

        assert cache.get("combined") == []
        assert "combined" in cache

    def test_clear(self):
        cache = TTLCache(300)
        cache.set("tmd", [1])
        cache.set("usgs", [2])

        cache.clear()

        assert len(cache) == 0
        assert "tmd" not in cache
