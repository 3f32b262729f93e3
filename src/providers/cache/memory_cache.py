"""In-memory cache provider using cachetools.TLRUCache.

Simple, fast cache suitable for development, tests and single-process
deployments.  Entries vanish on restart; use SQLiteCacheProvider when the
cache must survive a redeploy.
"""

from __future__ import annotations

import structlog
from cachetools import TLRUCache

from src.interfaces.cache_provider import ICacheProvider
from src.models.search import AggregateResult, CacheEntry
from src.utils.clock import Clock, utc_now

logger = structlog.get_logger(logger_name=__name__)


class MemoryCacheProvider(ICacheProvider):
    """In-memory cache backed by ``cachetools.TLRUCache``.

    Each entry's time-to-use is its own ``expires_at``, so per-call TTLs
    are honoured (a plain ``TTLCache`` applies one TTL to every entry).
    The cache's timer is driven by the injected *clock*.

    No lock is needed: every operation completes without awaiting, so
    concurrent searches on one event loop cannot interleave inside it.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    clock:
        Returns the current time.  Defaults to UTC wall-clock time.
    """

    def __init__(self, max_size: int = 1000, clock: Clock | None = None) -> None:
        self._clock = clock or utc_now
        self._cache: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=max_size,
            ttu=lambda _key, entry, _now: entry.expires_at.timestamp(),
            timer=lambda: self._clock().timestamp(),
        )

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> CacheEntry | None:
        """Return the live entry for *key*, or ``None`` if missing/expired."""
        entry = self._cache.get(key)
        if entry is not None and entry.is_live(self._clock()):
            logger.debug("cache_hit", key=key)
            return entry
        logger.debug("cache_miss", key=key)
        return None

    async def put(self, key: str, value: AggregateResult, ttl: int) -> CacheEntry:
        """Store *value* under *key* with an expiry *ttl* seconds from now."""
        entry = CacheEntry.create(key=key, value=value, created_at=self._clock(), ttl_seconds=ttl)
        self._cache[key] = entry
        logger.debug("cache_set", key=key, expires_at=entry.expires_at.isoformat())
        return entry

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (no-op if absent)."""
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def purge_expired(self) -> int:
        """Drop expired entries from memory and return how many were dropped."""
        before = self._cache.currsize
        self._cache.expire()
        purged = before - self._cache.currsize
        if purged:
            logger.debug("cache_purged", purged=purged)
        return purged

    def get_provider_name(self) -> str:
        return "memory_cache"
