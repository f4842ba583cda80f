"""In-memory cache for existence-check results with TTL support.

Keys are tuples, normally ``(resource_type, name)``. Invalidation takes a
key or any prefix of one, so ``invalidate(("st",))`` drops every cached
result for one resource type and ``invalidate()`` drops everything (used
when validation settings change).
"""

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

CacheKey = tuple[str, ...]


class _Miss:
    """Sentinel type returned by ``get()`` when nothing valid is cached."""

    _instance: "_Miss | None" = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()


@dataclass
class CacheEntry:
    """A cached value with expiration time."""

    value: Any
    expires_at: float


@dataclass
class CacheStats:
    """Statistics for cache performance monitoring."""

    hits: int = 0
    misses: int = 0
    size: int = 0
    ttl_seconds: int = 0

    def as_dict(self) -> dict[str, int]:
        """Return stats as a dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "size": self.size,
            "ttl": self.ttl_seconds,
        }


@dataclass
class ValidationCache:
    """
    Thread-safe TTL cache shared by concurrent naming requests.

    - Uses threading.Lock for dictionary access
    - Uses asyncio.Lock for the async accessors

    Neither lock is held while ``get_or_fetch_async`` awaits its fetch, so
    a slow existence check for one name never blocks lookups for other
    names.

    Args:
        ttl_seconds: Default time-to-live for entries (0 = disabled)
        clock: Monotonic time source, replaceable in tests
    """

    ttl_seconds: int = 300
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    _enabled: bool = field(init=False, default=True)
    _entries: dict[CacheKey, CacheEntry] = field(init=False, default_factory=dict)
    _hits: int = field(init=False, default=0)
    _misses: int = field(init=False, default=0)
    _async_lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        """Initialize derived state after dataclass init."""
        self._enabled = self.ttl_seconds > 0

    @property
    def enabled(self) -> bool:
        """Whether caching is enabled (TTL > 0)."""
        return self._enabled

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self.clock() >= entry.expires_at

    def get(self, key: CacheKey) -> Any:
        """Return the cached value for ``key`` or ``MISS``."""
        if not self._enabled:
            return MISS
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and not self._is_expired(entry):
                self._hits += 1
                return entry.value
            if entry is not None:
                del self._entries[key]
            self._misses += 1
            return MISS

    def set(self, key: CacheKey, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds (default: cache TTL)."""
        if not self._enabled:
            return
        ttl = self.ttl_seconds if ttl is None else ttl
        if ttl <= 0:
            return
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self.clock() + ttl)

    def invalidate(self, key_or_prefix: CacheKey = ()) -> int:
        """
        Drop the entry for a key, or every entry under a key prefix.

        Returns:
            Number of entries removed
        """
        width = len(key_or_prefix)
        with self._lock:
            doomed = [k for k in self._entries if k[:width] == key_or_prefix]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    async def get_async(self, key: CacheKey) -> Any:
        """Async counterpart of ``get()``."""
        async with self._async_lock:
            return self.get(key)

    async def set_async(self, key: CacheKey, value: Any, ttl: int | None = None) -> None:
        """Async counterpart of ``set()``."""
        async with self._async_lock:
            self.set(key, value, ttl)

    async def invalidate_async(self, key_or_prefix: CacheKey = ()) -> int:
        """Async counterpart of ``invalidate()``."""
        async with self._async_lock:
            return self.invalidate(key_or_prefix)

    async def get_or_fetch_async(
        self,
        key: CacheKey,
        fetch_fn: Callable[[], Awaitable[Any]],
        *,
        should_cache: Callable[[Any], bool] | None = None,
    ) -> Any:
        """
        Return the cached value for ``key``, fetching and storing it on a miss.

        Exceptions from ``fetch_fn`` propagate and nothing is stored.

        Args:
            key: Cache key
            fetch_fn: Async function producing the value
            should_cache: Predicate deciding whether a fetched value is stored
        """
        cached = await self.get_async(key)
        if cached is not MISS:
            return cached
        value = await fetch_fn()
        if should_cache is None or should_cache(value):
            await self.set_async(key, value)
        return value

    def get_stats(self) -> CacheStats:
        """
        Get cache performance statistics.

        Returns:
            CacheStats with hits, misses, size, and TTL
        """
        with self._lock:
            now = self.clock()
            size = sum(1 for e in self._entries.values() if now < e.expires_at)
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=size,
                ttl_seconds=self.ttl_seconds,
            )
