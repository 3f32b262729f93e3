"""Search result models for the knowledge search service.

Defines Pydantic v2 models for the three values that flow through the
cache-aside aggregation layer:

    - ResultItem      : one hit from one upstream provider
    - AggregateResult : provider name → ordered list of ResultItem
    - CacheEntry      : an AggregateResult stored under a normalized query
                         with an absolute expiry timestamp

All models use frozen config: a cache entry is never mutated after it is
written, and results handed back to callers cannot be edited in place.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# ResultItem: a single provider hit.
# ---------------------------------------------------------------------------
class ResultItem(BaseModel):
    """A single search hit returned by one upstream provider.

    Providers decode their own JSON shapes into this common structure.
    Every field except ``provider`` has a default so that a hit with
    missing fields is kept rather than failing the whole response.
    """

    model_config = ConfigDict(frozen=True)

    # Name of the provider that returned this item (e.g. "stackoverflow").
    provider: str
    title: str = ""
    # Absolute URL of the question / post.
    link: str = ""
    score: int = 0
    # Raw body text.  HTML for Stack Overflow, markdown for Reddit self-posts.
    body: str = ""
    created_at: datetime | None = None
    # 0-based position in the provider's response (its relevance ranking).
    rank: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# AggregateResult: the combined, provider-keyed search result.
# ---------------------------------------------------------------------------
class AggregateResult(BaseModel):
    """Combined search result keyed by provider name.

    Dict insertion order follows the configured provider order and each
    list keeps the provider's response order.  Both survive JSON
    round-trips, so a cached result renders identically to a fresh one.
    """

    model_config = ConfigDict(frozen=True)

    results: dict[str, list[ResultItem]] = Field(default_factory=dict)

    def providers(self) -> list[str]:
        """Return provider names in result order."""
        return list(self.results)

    def items_for(self, provider: str) -> list[ResultItem]:
        """Return the items for *provider*, or an empty list if absent."""
        return list(self.results.get(provider, []))

    def total_items(self) -> int:
        return sum(len(items) for items in self.results.values())


# ---------------------------------------------------------------------------
# CacheEntry: a stored AggregateResult with an expiry timestamp.
# ---------------------------------------------------------------------------
class CacheEntry(BaseModel):
    """An AggregateResult cached under a normalized query.

    ``expires_at`` is always ``created_at + ttl``.  An entry is *live*
    strictly before ``expires_at``; at or after it the entry must be
    treated as absent.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: AggregateResult
    created_at: datetime
    expires_at: datetime

    @classmethod
    def create(
        cls,
        key: str,
        value: AggregateResult,
        created_at: datetime,
        ttl_seconds: int,
    ) -> CacheEntry:
        """Build an entry whose expiry is *ttl_seconds* after *created_at*."""
        return cls(
            key=key,
            value=value,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=ttl_seconds),
        )

    def is_live(self, now: datetime) -> bool:
        """Return ``True`` if the entry has not yet expired at *now*."""
        return now < self.expires_at
