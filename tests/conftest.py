"""Shared pytest fixtures for the knowledge search test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.search_provider import ISearchProvider
from src.models.search import AggregateResult, ResultItem
from src.providers.cache.memory_cache import MemoryCacheProvider

# Fixed reference time for every clock-driven test.
T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock; call it to read the current time."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, **kwargs: float) -> None:
        self.now += timedelta(seconds=seconds, **kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


def make_item(provider: str, title: str, rank: int = 0, **overrides: Any) -> ResultItem:
    """Build a ResultItem with a predictable link and score."""
    fields: dict[str, Any] = {
        "provider": provider,
        "title": title,
        "link": f"https://example.com/{provider}/{rank}",
        "score": 10 - rank,
        "body": f"<p>Body of {title}</p>",
        "rank": rank,
    }
    fields.update(overrides)
    return ResultItem(**fields)


@pytest.fixture
def stackoverflow_items() -> list[ResultItem]:
    return [
        make_item("stackoverflow", "How do I use asyncio.gather?", rank=0),
        make_item("stackoverflow", "asyncio vs threading", rank=1),
    ]


@pytest.fixture
def reddit_items() -> list[ResultItem]:
    return [make_item("reddit", "Asyncio finally clicked for me", rank=0)]


@pytest.fixture
def sample_result(
    stackoverflow_items: list[ResultItem],
    reddit_items: list[ResultItem],
) -> AggregateResult:
    return AggregateResult(
        results={"stackoverflow": stackoverflow_items, "reddit": reddit_items}
    )


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


def make_mock_provider(
    name: str,
    items: list[ResultItem] | None = None,
    *,
    error: BaseException | None = None,
    delay: float = 0.0,
) -> MagicMock:
    """Return a mock ISearchProvider whose ``fetch`` is an AsyncMock.

    With *delay*, ``fetch`` sleeps that many seconds before answering so
    fan-out timing can be observed.
    """
    provider = MagicMock(spec=ISearchProvider)
    provider.get_provider_name.return_value = name
    provider.is_available.return_value = True

    async def _fetch(query: str) -> list[ResultItem]:
        if delay:
            await asyncio.sleep(delay)
        if error is not None:
            raise error
        return list(items or [])

    provider.fetch = AsyncMock(side_effect=_fetch)
    provider.aclose = AsyncMock()
    return provider


@pytest.fixture
def provider_factory() -> Callable[..., MagicMock]:
    return make_mock_provider


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCacheProvider:
    return MemoryCacheProvider(max_size=100, clock=clock)


@pytest.fixture
def cache_db_path(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "search_cache.db"
