"""Unit tests for SearchService: cache-aside lookup, fan-out and failure rules."""

from __future__ import annotations

import asyncio
import time
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.cache_provider import ICacheProvider
from src.models.search import AggregateResult
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.services.search_service import SearchService
from src.utils.errors import (
    ConfigurationError,
    InvalidQueryError,
    ProviderError,
    StoreUnavailableError,
    UpstreamFailureError,
)
from tests.conftest import T0, FakeClock, make_mock_provider


# ======================================================================
# Shared helpers
# ======================================================================


def _service(memory_cache, stackoverflow_items, reddit_items, **kwargs):
    so = make_mock_provider("stackoverflow", stackoverflow_items)
    rd = make_mock_provider("reddit", reddit_items)
    return SearchService([so, rd], memory_cache, **kwargs), so, rd


def _unavailable_cache(*, on: str) -> MagicMock:
    cache = MagicMock(spec=ICacheProvider)
    cache.get = AsyncMock(return_value=None)
    cache.put = AsyncMock()
    failure = StoreUnavailableError("database is locked", provider_name="sqlite_cache")
    getattr(cache, on).side_effect = failure
    return cache


# ======================================================================
# Construction
# ======================================================================


class TestConstruction:
    def test_requires_a_provider(self, memory_cache) -> None:
        with pytest.raises(ConfigurationError):
            SearchService([], memory_cache)

    def test_rejects_duplicate_provider_names(self, memory_cache) -> None:
        providers = [make_mock_provider("reddit"), make_mock_provider("reddit")]
        with pytest.raises(ConfigurationError, match="Duplicate"):
            SearchService(providers, memory_cache)

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_rejects_non_positive_ttl(self, memory_cache, ttl: int) -> None:
        with pytest.raises(ConfigurationError):
            SearchService([make_mock_provider("reddit")], memory_cache, ttl_seconds=ttl)

    def test_provider_names_in_configured_order(self, memory_cache) -> None:
        service = SearchService(
            [make_mock_provider("stackoverflow"), make_mock_provider("reddit")], memory_cache
        )
        assert service.provider_names() == ["stackoverflow", "reddit"]


# ======================================================================
# Query validation
# ======================================================================


class TestQueryValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "   ", "\n\t", None, 42])
    async def test_invalid_query_touches_nothing(self, raw, provider_factory) -> None:
        cache = MagicMock(spec=ICacheProvider)
        cache.get = AsyncMock()
        cache.put = AsyncMock()
        provider = provider_factory("reddit")
        service = SearchService([provider], cache)

        with pytest.raises(InvalidQueryError):
            await service.search(raw)

        cache.get.assert_not_awaited()
        cache.put.assert_not_awaited()
        provider.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_query_is_not_an_upstream_failure(self, memory_cache) -> None:
        service = SearchService([make_mock_provider("reddit")], memory_cache)
        with pytest.raises(InvalidQueryError) as exc_info:
            await service.search("  ")
        assert not isinstance(exc_info.value, UpstreamFailureError)


# ======================================================================
# Cache-aside behaviour
# ======================================================================


class TestCacheAside:
    @pytest.mark.asyncio
    async def test_miss_fetches_every_provider_and_caches(
        self, memory_cache, stackoverflow_items, reddit_items
    ) -> None:
        service, so, rd = _service(memory_cache, stackoverflow_items, reddit_items)

        result = await service.search("Python")

        so.fetch.assert_awaited_once_with("python")
        rd.fetch.assert_awaited_once_with("python")
        assert result.providers() == ["stackoverflow", "reddit"]
        assert result.items_for("stackoverflow") == stackoverflow_items
        assert result.items_for("reddit") == reddit_items

        entry = await memory_cache.get("python")
        assert entry is not None
        assert entry.value == result

    @pytest.mark.asyncio
    async def test_repeat_search_is_served_from_cache(
        self, memory_cache, stackoverflow_items, reddit_items
    ) -> None:
        service, so, rd = _service(memory_cache, stackoverflow_items, reddit_items)

        first = await service.search("python")
        second = await service.search("python")

        assert first == second
        assert so.fetch.await_count == 1
        assert rd.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_equivalent_queries_share_an_entry(
        self, memory_cache, stackoverflow_items, reddit_items
    ) -> None:
        service, so, _rd = _service(memory_cache, stackoverflow_items, reddit_items)

        await service.search("Python")
        await service.search("  PYTHON \n")

        assert so.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_different_queries_are_cached_separately(
        self, memory_cache, stackoverflow_items, reddit_items
    ) -> None:
        service, so, _rd = _service(memory_cache, stackoverflow_items, reddit_items)

        await service.search("python")
        await service.search("rust")

        assert [call.args[0] for call in so.fetch.await_args_list] == ["python", "rust"]

    @pytest.mark.asyncio
    async def test_refetches_after_ttl(
        self, clock: FakeClock, memory_cache, stackoverflow_items, reddit_items
    ) -> None:
        service, so, _rd = _service(memory_cache, stackoverflow_items, reddit_items)

        await service.search("python")
        clock.advance(minutes=59)
        await service.search("python")
        assert so.fetch.await_count == 1

        clock.advance(minutes=2)
        await service.search("python")
        assert so.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_entry_uses_configured_ttl(
        self, memory_cache, stackoverflow_items, reddit_items
    ) -> None:
        service, _so, _rd = _service(
            memory_cache, stackoverflow_items, reddit_items, ttl_seconds=120
        )
        await service.search("python")

        entry = await memory_cache.get("python")
        assert entry is not None
        assert entry.expires_at == T0 + timedelta(seconds=120)

    @pytest.mark.asyncio
    async def test_empty_results_are_cached(self, memory_cache) -> None:
        service, so, _rd = _service(memory_cache, [], [])

        result = await service.search("zzzz-no-hits")
        await service.search("zzzz-no-hits")

        assert result.results == {"stackoverflow": [], "reddit": []}
        assert so.fetch.await_count == 1


# ======================================================================
# Fan-out and failure handling
# ======================================================================


class TestFanOut:
    @pytest.mark.asyncio
    async def test_providers_are_queried_concurrently(self, memory_cache) -> None:
        so = make_mock_provider("stackoverflow", [], delay=0.2)
        rd = make_mock_provider("reddit", [], delay=0.3)
        service = SearchService([so, rd], memory_cache)

        start = time.perf_counter()
        await service.search("python")
        elapsed = time.perf_counter() - start

        # Sequential calls would take at least 0.5s.
        assert 0.28 <= elapsed < 0.5

    @pytest.mark.asyncio
    async def test_single_failure_fails_whole_search(
        self, memory_cache, stackoverflow_items
    ) -> None:
        error = ProviderError("HTTP 503 from Reddit", provider_name="reddit")
        so = make_mock_provider("stackoverflow", stackoverflow_items)
        rd = make_mock_provider("reddit", error=error)
        service = SearchService([so, rd], memory_cache)

        with pytest.raises(UpstreamFailureError) as exc_info:
            await service.search("python")

        assert exc_info.value.failed_providers == ["reddit"]
        assert exc_info.value.__cause__ is error
        assert await memory_cache.get("python") is None

    @pytest.mark.asyncio
    async def test_all_failures_are_reported_in_order(self, memory_cache) -> None:
        so = make_mock_provider("stackoverflow", error=ProviderError("down"))
        rd = make_mock_provider("reddit", error=ProviderError("down"))
        service = SearchService([so, rd], memory_cache)

        with pytest.raises(UpstreamFailureError) as exc_info:
            await service.search("python")

        assert exc_info.value.failed_providers == ["stackoverflow", "reddit"]
        assert "stackoverflow, reddit" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, memory_cache, stackoverflow_items) -> None:
        so = make_mock_provider("stackoverflow", stackoverflow_items)
        rd = make_mock_provider("reddit", error=ProviderError("down"))
        service = SearchService([so, rd], memory_cache)

        for _ in range(2):
            with pytest.raises(UpstreamFailureError):
                await service.search("python")

        assert so.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_an_upstream_failure(self, memory_cache) -> None:
        so = make_mock_provider("stackoverflow", [])
        rd = make_mock_provider("reddit", error=KeyError("data"))
        service = SearchService([so, rd], memory_cache)

        with pytest.raises(UpstreamFailureError) as exc_info:
            await service.search("python")
        assert exc_info.value.failed_providers == ["reddit"]

    @pytest.mark.asyncio
    async def test_timeout_fails_slow_providers(self, memory_cache) -> None:
        so = make_mock_provider("stackoverflow", [])
        rd = make_mock_provider("reddit", [], delay=5)
        service = SearchService([so, rd], memory_cache, timeout=0.05)

        start = time.perf_counter()
        with pytest.raises(UpstreamFailureError) as exc_info:
            await service.search("python")

        assert time.perf_counter() - start < 1
        assert exc_info.value.failed_providers == ["reddit"]
        assert isinstance(exc_info.value.__cause__, TimeoutError)
        assert await memory_cache.get("python") is None


# ======================================================================
# Cache store failures
# ======================================================================


class TestStoreUnavailable:
    @pytest.mark.asyncio
    async def test_read_failure_propagates_without_fetching(self, provider_factory) -> None:
        cache = _unavailable_cache(on="get")
        provider = provider_factory("reddit")
        service = SearchService([provider], cache)

        with pytest.raises(StoreUnavailableError):
            await service.search("python")
        provider.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self, provider_factory, reddit_items) -> None:
        cache = _unavailable_cache(on="put")
        service = SearchService([provider_factory("reddit", reddit_items)], cache)

        with pytest.raises(UpstreamFailureError) as exc_info:
            await service.search("python")
        assert isinstance(exc_info.value, StoreUnavailableError)
        assert exc_info.value.provider_name == "sqlite_cache"


# ======================================================================
# Concurrency
# ======================================================================


class TestConcurrentSearches:
    @pytest.mark.asyncio
    async def test_concurrent_misses_fetch_once(self, memory_cache) -> None:
        so = make_mock_provider("stackoverflow", [], delay=0.05)
        rd = make_mock_provider("reddit", [], delay=0.05)
        service = SearchService([so, rd], memory_cache)

        results = await asyncio.gather(*(service.search("Python") for _ in range(5)))

        assert so.fetch.await_count == 1
        assert rd.fetch.await_count == 1
        assert all(result == results[0] for result in results)
        assert service._in_flight == {}

    @pytest.mark.asyncio
    async def test_different_keys_fetch_in_parallel(self, memory_cache) -> None:
        so = make_mock_provider("stackoverflow", [], delay=0.2)
        rd = make_mock_provider("reddit", [], delay=0.2)
        service = SearchService([so, rd], memory_cache)

        start = time.perf_counter()
        await asyncio.gather(service.search("python"), service.search("rust"))
        assert time.perf_counter() - start < 0.35
        assert so.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_waiters_retry_after_leader_fails(self, memory_cache) -> None:
        calls = 0

        async def flaky(query: str):
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            if calls == 1:
                raise ProviderError("first call fails", provider_name="reddit")
            return []

        rd = make_mock_provider("reddit")
        rd.fetch = AsyncMock(side_effect=flaky)
        service = SearchService([rd], memory_cache)

        outcomes = await asyncio.gather(
            service.search("python"), service.search("python"), return_exceptions=True
        )

        assert isinstance(outcomes[0], UpstreamFailureError)
        assert isinstance(outcomes[1], AggregateResult)
        assert calls == 2

    @pytest.mark.asyncio
    async def test_cancelled_search_writes_nothing(self, memory_cache) -> None:
        so = make_mock_provider("stackoverflow", [], delay=5)
        rd = make_mock_provider("reddit", [], delay=5)
        service = SearchService([so, rd], memory_cache)

        task = asyncio.ensure_future(service.search("python"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert await memory_cache.get("python") is None
        assert service._in_flight == {}


# ======================================================================
# End to end with the in-memory cache
# ======================================================================


@pytest.mark.asyncio
async def test_search_then_cached_lookup_round_trip(clock: FakeClock) -> None:
    cache = MemoryCacheProvider(clock=clock)
    so = make_mock_provider("stackoverflow", [])
    rd = make_mock_provider("reddit", [])
    service = SearchService([so, rd], cache)

    result = await service.search("  Python ")
    entry = await cache.get("python")

    assert entry is not None
    assert entry.key == "python"
    assert entry.value == result
    assert entry.created_at == T0
