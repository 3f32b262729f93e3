"""Abstract base class for upstream search providers.

Defines the contract for the external knowledge sources the search
service fans out to.  Each implementation wraps one HTTP search API,
sets its own provider-specific parameters and static request headers,
and decodes the provider's JSON into :class:`~src.models.search.ResultItem`
objects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.search import ResultItem


# Concrete implementations: StackOverflowSearchProvider, RedditSearchProvider
# (src/providers/search/).
class ISearchProvider(ABC):
    """Contract for upstream search services.

    Implementations return the provider's hits for an already-normalized
    query string, in the provider's own response order.
    """

    async def aclose(self) -> None:
        """Release any HTTP client the provider owns.  Default is a no-op."""

    @abstractmethod
    async def fetch(self, query: str) -> list[ResultItem]:
        """Execute a search and return the provider's hits.

        Parameters
        ----------
        query:
            The normalized query.  Sent to the provider unchanged.

        Returns
        -------
        list[ResultItem]
            Zero or more items, in provider response order, with ``rank``
            set to each item's position.

        Raises
        ------
        src.utils.errors.ProviderError
            On transport error, non-2xx response, or unparseable payload.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the identifier used as the key in aggregate results.

        Example return values: ``"stackoverflow"``, ``"reddit"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured for use."""
