"""Cache providers.

Time-bounded store for aggregate search results, keyed by normalized query,
so repeated searches within the TTL window never reach Stack Overflow or
Reddit.

SQLiteCacheProvider is the default: durable across restarts and shared by
every worker on the host.  MemoryCacheProvider is a process-local
alternative for development and tests.
"""

from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.sqlite_cache import SQLiteCacheProvider

__all__ = ["MemoryCacheProvider", "SQLiteCacheProvider"]
