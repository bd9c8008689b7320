"""Tests for SnapshotCache."""

import pytest

from src.analytics.cache import SnapshotCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestSnapshotCache:
    """Tests for the TTL snapshot cache."""

    def test_get_or_compute_hit(self, clock):
        """Test that a second call is served from cache."""
        cache = SnapshotCache(ttl_seconds=60, clock=clock)
        calls = []

        def compute():
            calls.append(1)
            return {"value": len(calls)}

        first = cache.get_or_compute("layer-1", "t-1", compute)
        second = cache.get_or_compute("layer-1", "t-1", compute)

        assert first is second
        assert len(calls) == 1
        info = cache.cache_info()
        assert (info.hits, info.misses, info.size) == (1, 1, 1)

    def test_new_trade_changes_key(self, clock):
        """Test that a new latest trade id forces recomputation."""
        cache = SnapshotCache(clock=clock)
        cache.put("layer-1", "t-1", "old")

        assert cache.get("layer-1", "t-2") is None
        cache.put("layer-1", "t-2", "new")
        assert cache.get("layer-1", "t-1") is None
        assert cache.get("layer-1", "t-2") == "new"

    def test_ttl_expiry(self, clock):
        """Test that entries expire after the TTL."""
        cache = SnapshotCache(ttl_seconds=10, clock=clock)
        cache.put("layer-1", "t-1", "snap")

        clock.now = 10.0
        assert cache.get("layer-1", "t-1") == "snap"
        clock.now = 10.5
        assert cache.get("layer-1", "t-1") is None
        assert cache.cache_info().size == 0

    def test_force_refresh(self, clock):
        """Test recomputation on demand."""
        cache = SnapshotCache(clock=clock)
        cache.put("layer-1", "t-1", "old")
        assert cache.get_or_compute("layer-1", "t-1", lambda: "new", force_refresh=True) == "new"
        assert cache.get("layer-1", "t-1") == "new"

    def test_invalidate(self, clock):
        """Test dropping one layer."""
        cache = SnapshotCache(clock=clock)
        cache.put("layer-1", "t-1", "a")
        cache.put("layer-2", "t-9", "b")

        assert cache.invalidate("layer-1") == 1
        assert cache.get("layer-1", "t-1") is None
        assert cache.get("layer-2", "t-9") == "b"

    def test_lru_eviction(self, clock):
        """Test that the least recently used layer is evicted."""
        cache = SnapshotCache(maxsize=2, clock=clock)
        cache.put("layer-1", "t", 1)
        cache.put("layer-2", "t", 2)
        cache.get("layer-1", "t")
        cache.put("layer-3", "t", 3)

        assert cache.get("layer-2", "t") is None
        assert cache.get("layer-1", "t") == 1
        assert cache.get("layer-3", "t") == 3

    def test_clear(self, clock):
        """Test clearing entries and statistics."""
        cache = SnapshotCache(clock=clock)
        cache.put("layer-1", "t", 1)
        cache.get("layer-1", "t")
        cache.clear()
        info = cache.cache_info()
        assert (info.hits, info.misses, info.size) == (0, 0, 0)

    def test_invalid_arguments(self):
        """Test constructor validation."""
        with pytest.raises(ValueError):
            SnapshotCache(ttl_seconds=0)
        with pytest.raises(ValueError):
            SnapshotCache(maxsize=0)
