"""Abstract base class for search-result cache providers.

Defines the contract for the time-bounded store that sits in front of the
upstream search providers.  Keys are normalized queries; values are
:class:`~src.models.search.AggregateResult` objects wrapped in a
:class:`~src.models.search.CacheEntry` with an absolute expiry.
Implementations may use SQLite, an in-memory map, Redis, or any other
backend; the search service never sees which.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.search import AggregateResult, CacheEntry


class ICacheProvider(ABC):
    """Contract for the search-result cache.

    All operations are async to allow for network-backed stores without
    blocking the event loop.  Implementations must be safe under concurrent
    ``get``/``put`` calls from simultaneous searches, and must raise
    :class:`~src.utils.errors.StoreUnavailableError` (never return an empty
    result) when the backend cannot be reached.
    """

    async def initialize(self) -> None:
        """Prepare the backend (create tables, open connections).

        Called once at application startup.  The default is a no-op.
        """

    async def close(self) -> None:
        """Release backend resources.  Called once at shutdown."""

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the live entry stored under *key*.

        Parameters
        ----------
        key:
            The normalized query.

        Returns
        -------
        CacheEntry or None
            The entry if present and not expired; ``None`` otherwise.
            Callers cannot tell "never written" from "expired".

        Raises
        ------
        src.utils.errors.StoreUnavailableError
            If the backend cannot be read.
        """

    @abstractmethod
    async def put(self, key: str, value: AggregateResult, ttl: int) -> CacheEntry:
        """Store *value* under *key*, replacing any existing entry.

        Parameters
        ----------
        key:
            The normalized query.
        value:
            The combined search result.
        ttl:
            Time-to-live in seconds, measured from the time of this call.

        Returns
        -------
        CacheEntry
            The entry as written, including its ``expires_at``.

        Raises
        ------
        src.utils.errors.StoreUnavailableError
            If the backend cannot be written.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry stored under *key* (no-op if absent)."""

    @abstractmethod
    async def purge_expired(self) -> int:
        """Physically remove expired entries and return how many were removed.

        Purging is never required for correctness: expired entries are
        already invisible to :meth:`get`.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this cache backend."""
