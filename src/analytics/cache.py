"""Snapshot cache for layer reports.

The analytics engine is a pure function of the ledger snapshot, so a report
can be memoized by (layer_id, latest_trade_id). A new settled trade changes
the key, which invalidates the previous snapshot without explicit calls.

Usage:
    cache = SnapshotCache(ttl_seconds=300)
    report = cache.get_or_compute("layer-1", "t-42", lambda: build())

    # Check cache efficiency
    info = cache.cache_info()
    print(f"Hit rate: {info.hits / (info.hits + info.misses):.1%}")
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, NamedTuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheKey = tuple[str, str | None]


class CacheInfo(NamedTuple):
    """Cache statistics."""

    hits: int
    misses: int
    size: int
    maxsize: int


class SnapshotCache:
    """TTL + LRU cache keyed by (layer_id, latest_trade_id).

    Thread-safe. The clock is injectable for tests.
    """

    DEFAULT_TTL = 300  # 5 minutes

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL,
        maxsize: int = 128,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize snapshot cache.

        Args:
            ttl_seconds: Time-to-live of an entry in seconds.
            maxsize: Maximum number of cached snapshots (oldest evicted first).
            clock: Monotonic time source.
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self._ttl = ttl_seconds
        self._maxsize = maxsize
        self._clock = clock
        self._entries: OrderedDict[CacheKey, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, layer_id: str, latest_trade_id: str | None) -> Any | None:
        """Cached snapshot, or None if absent or expired."""
        key = (layer_id, latest_trade_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            stored_at, value = entry
            if self._clock() - stored_at > self._ttl:
                del self._entries[key]
                self._misses += 1
                logger.debug(f"Snapshot expired: {key}")
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return value

    def put(self, layer_id: str, latest_trade_id: str | None, value: Any) -> None:
        """Store a snapshot, replacing older snapshots of the same layer."""
        key = (layer_id, latest_trade_id)
        with self._lock:
            for stale in [k for k in self._entries if k[0] == layer_id and k != key]:
                del self._entries[stale]
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self._maxsize:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Snapshot evicted: {evicted}")

    def get_or_compute(
        self,
        layer_id: str,
        latest_trade_id: str | None,
        compute: Callable[[], T],
        force_refresh: bool = False,
    ) -> T:
        """Get snapshot from cache or compute and store it.

        Args:
            layer_id: Layer identifier.
            latest_trade_id: Id of the most recent trade in the snapshot.
            compute: Function producing the snapshot on a miss.
            force_refresh: Recompute even if a fresh snapshot is cached.
        """
        if not force_refresh:
            cached = self.get(layer_id, latest_trade_id)
            if cached is not None:
                logger.debug(f"Cache hit for layer snapshot: {layer_id}@{latest_trade_id}")
                return cached

        logger.debug(f"Cache miss for layer snapshot: {layer_id}@{latest_trade_id}, computing...")
        value = compute()
        self.put(layer_id, latest_trade_id, value)
        return value

    def invalidate(self, layer_id: str) -> int:
        """Drop every snapshot of a layer. Returns the number removed."""
        with self._lock:
            keys = [k for k in self._entries if k[0] == layer_id]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def clear(self) -> None:
        """Drop all snapshots and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def cache_info(self) -> CacheInfo:
        """Return cache statistics."""
        with self._lock:
            return CacheInfo(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                maxsize=self._maxsize,
            )
