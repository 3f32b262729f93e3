"""Reddit search provider implementing ISearchProvider.

Queries Reddit's public ``search.json`` listing sorted by relevance.
Reddit rejects requests without a descriptive ``User-Agent``, so one is
configured once per provider instance and sent on every request.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.interfaces.search_provider import ISearchProvider
from src.models.search import ResultItem
from src.providers.search.parsing import coerce_int, coerce_str, epoch_to_datetime
from src.utils.errors import ProviderError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_SEARCH_URL = "https://www.reddit.com/search.json"
_PERMALINK_BASE = "https://reddit.com"
_DEFAULT_TIMEOUT = 15.0
_DEFAULT_USER_AGENT = "KnowledgeBaseApp/1.0.0"


class RedditSearchProvider(ISearchProvider):
    """Post search against Reddit's public JSON listing.

    Parameters
    ----------
    http_client:
        Shared client; a private one is created (and closed by
        :meth:`aclose`) when omitted.
    search_url:
        Listing endpoint.
    limit:
        Maximum number of posts requested.
    user_agent:
        Client identification sent as the ``User-Agent`` header.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        search_url: str = _DEFAULT_SEARCH_URL,
        limit: int = 10,
        user_agent: str = _DEFAULT_USER_AGENT,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._search_url = search_url
        self._limit = limit
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=self._headers,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # ISearchProvider implementation
    # ------------------------------------------------------------------

    async def fetch(self, query: str) -> list[ResultItem]:
        """Search Reddit posts for *query* in relevance order."""
        params = {"q": query, "sort": "relevance", "limit": self._limit}
        try:
            response = await self._client.get(
                self._search_url, params=params, headers=self._headers
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise ProviderError(
                message="Timed out waiting for Reddit",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                message=f"HTTP {exc.response.status_code} from Reddit",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"Request to Reddit failed: {type(exc).__name__}",
                provider_name=self.get_provider_name(),
            ) from exc
        except ValueError as exc:
            raise ProviderError(
                message="Reddit returned a non-JSON response",
                provider_name=self.get_provider_name(),
            ) from exc

        results = self._parse_listing(data)
        logger.debug("reddit_search_complete", query=query, result_count=len(results))
        return results

    def get_provider_name(self) -> str:
        return "reddit"

    def is_available(self) -> bool:
        """Available whenever a User-Agent is configured."""
        return bool(self._headers.get("User-Agent"))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _parse_listing(self, data: Any) -> list[ResultItem]:
        listing = data.get("data") if isinstance(data, dict) else None
        if not isinstance(listing, dict):
            raise ProviderError(
                message="Unexpected Reddit payload shape",
                provider_name=self.get_provider_name(),
            )

        children = listing.get("children") or []
        if not isinstance(children, list):
            raise ProviderError(
                message="Reddit 'children' is not a list",
                provider_name=self.get_provider_name(),
            )

        results: list[ResultItem] = []
        for child in children:
            post = child.get("data") if isinstance(child, dict) else None
            if not isinstance(post, dict):
                continue
            results.append(
                ResultItem(
                    provider=self.get_provider_name(),
                    title=coerce_str(post.get("title")),
                    link=self._post_link(post),
                    score=coerce_int(post.get("score")),
                    body=coerce_str(post.get("selftext")),
                    created_at=epoch_to_datetime(post.get("created_utc")),
                    rank=len(results),
                )
            )
        return results

    @staticmethod
    def _post_link(post: dict[str, Any]) -> str:
        permalink = coerce_str(post.get("permalink"))
        if permalink.startswith("/"):
            return f"{_PERMALINK_BASE}{permalink}"
        return permalink or coerce_str(post.get("url"))
