"""Cache-aside search across every configured upstream provider.

Architecture role: **Facade / Orchestrator**
--------------------------------------------
The API routes and the CLI hand this service a raw query string and get
back an :class:`~src.models.search.AggregateResult`.  Everything between
those two points lives here:

1. Reject empty queries before touching the cache or any provider.
2. Normalize the query into its cache key.
3. Serve a live cache entry if one exists.
4. Otherwise fan out to every provider concurrently and join on all.
5. If any provider failed, raise ``UpstreamFailureError``; nothing is
   cached and no partial result is returned.
6. Combine, cache with the configured TTL, return.

Concurrent misses for the same key inside one process are collapsed by a
per-key ``asyncio.Lock``: the first caller fetches, later callers wait and
then find the fresh entry in the cache.  Across processes the last write
wins, which is harmless because entries are never mutated.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.search_provider import ISearchProvider
from src.models.search import AggregateResult, ResultItem
from src.services.result_combiner import combine
from src.utils.concurrency import gather_named
from src.utils.errors import ConfigurationError, InvalidQueryError, UpstreamFailureError
from src.utils.logging import get_logger
from src.utils.text_normalizer import normalize_query

DEFAULT_TTL_SECONDS = 3600


@dataclass
class _InFlight:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    # Number of searches holding or waiting on ``lock``.
    refs: int = 0


class SearchService:
    """Runs cache-aside searches over a fixed set of providers.

    Providers and the cache are injected at construction time; the service
    owns neither and never opens or closes them.

    Parameters
    ----------
    providers:
        Upstream providers.  Their order is the key order of every
        aggregate result; names must be unique.
    cache:
        The search-result cache.
    ttl_seconds:
        Lifetime of each cache entry.
    timeout:
        Optional wall-clock limit in seconds for the provider fan-out.
    """

    def __init__(
        self,
        providers: Sequence[ISearchProvider],
        cache: ICacheProvider,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        timeout: float | None = None,
    ) -> None:
        if not providers:
            raise ConfigurationError("At least one search provider is required")
        names = [provider.get_provider_name() for provider in providers]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate search provider names: {names}")
        if ttl_seconds <= 0:
            raise ConfigurationError(f"Cache TTL must be positive, got {ttl_seconds}")

        self._providers = list(providers)
        self._cache = cache
        self._ttl_seconds = ttl_seconds
        self._timeout = timeout
        self._in_flight: dict[str, _InFlight] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def provider_names(self) -> list[str]:
        """Return the configured provider names in result order."""
        return [provider.get_provider_name() for provider in self._providers]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def search(self, raw_query: str) -> AggregateResult:
        """Return the aggregate result for *raw_query*, from cache when live.

        Raises
        ------
        InvalidQueryError
            If *raw_query* is not a string or is blank after trimming.
        UpstreamFailureError
            If any provider failed or timed out.
        StoreUnavailableError
            If the cache backend could not be read or written.
        """
        if not isinstance(raw_query, str) or not raw_query.strip():
            raise InvalidQueryError("Search query must be a non-empty string")

        query = normalize_query(raw_query)

        entry = await self._cache.get(query)
        if entry is not None:
            self._logger.info("search_cache_hit", query=query)
            return entry.value

        in_flight = self._in_flight.setdefault(query, _InFlight())
        in_flight.refs += 1
        try:
            async with in_flight.lock:
                # A concurrent search may have filled the entry while we waited.
                entry = await self._cache.get(query)
                if entry is not None:
                    self._logger.info("search_cache_hit", query=query, after_wait=True)
                    return entry.value

                self._logger.info("search_cache_miss", query=query)
                result = await self._fetch_all(query)
                await self._cache.put(query, result, self._ttl_seconds)
                return result
        finally:
            in_flight.refs -= 1
            if in_flight.refs == 0:
                self._in_flight.pop(query, None)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_all(self, query: str) -> AggregateResult:
        """Query every provider concurrently; all must succeed."""
        start = time.perf_counter()
        outcomes = await gather_named(
            {provider.get_provider_name(): provider.fetch(query) for provider in self._providers},
            timeout=self._timeout,
        )

        failures: dict[str, BaseException] = {}
        per_provider: dict[str, list[ResultItem]] = {}
        for name, outcome in outcomes.items():
            if isinstance(outcome, BaseException):
                failures[name] = outcome
            else:
                per_provider[name] = outcome

        if failures:
            for name, exc in failures.items():
                self._logger.warning(
                    "provider_fetch_failed",
                    query=query,
                    provider=name,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
            raise UpstreamFailureError(
                message=f"Search provider(s) failed: {', '.join(failures)}",
                failed_providers=list(failures),
            ) from next(iter(failures.values()))

        result = combine(per_provider)
        self._logger.info(
            "search_fetch_complete",
            query=query,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            counts={name: len(items) for name, items in result.results.items()},
        )
        return result
