"""Public interface definitions for all external service providers.

Every external API or store used by the search service is accessed
exclusively through the abstract base classes defined in this package.
Concrete adapters implement these interfaces and are injected at runtime.

The adapter pattern decouples the cache-aside logic from specific external
services.  Instead of calling ``httpx.get("https://api.stackexchange.com/...")``
inside the search service, the service calls ``provider.fetch(query)`` on any
object implementing ``ISearchProvider``.  This means:
    - Adding a third knowledge source is one new class plus one line in
      ``src/main.py``.
    - Unit tests inject mock providers and an in-memory cache.

CONCRETE PROVIDER MAP:
    Interface           →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    ISearchProvider     →  StackOverflowSearchProvider, RedditSearchProvider
    ICacheProvider      →  SQLiteCacheProvider, MemoryCacheProvider

Re-exports
----------
ISearchProvider
    Upstream search contract.
ICacheProvider
    Time-bounded search-result cache contract.
"""

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.search_provider import ISearchProvider

__all__ = [
    "ICacheProvider",
    "ISearchProvider",
]
