"""Stack Overflow search provider implementing ISearchProvider.

Queries the Stack Exchange ``/search/advanced`` endpoint for questions on
Stack Overflow, ordered by votes, with question bodies included.  No API key
is required for the anonymous quota.
"""

from __future__ import annotations

import html
from typing import Any

import httpx
import structlog

from src.interfaces.search_provider import ISearchProvider
from src.models.search import ResultItem
from src.providers.search.parsing import coerce_int, coerce_str, epoch_to_datetime
from src.utils.errors import ProviderError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_API_URL = "https://api.stackexchange.com/2.3/search/advanced"
_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {"Accept": "application/json"}


class StackOverflowSearchProvider(ISearchProvider):
    """Question search against the Stack Exchange API.

    Request parameters are fixed: ``site`` (default ``stackoverflow``),
    ``order=desc``, ``sort=votes`` and ``filter=withbody`` so each item
    carries its HTML body.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        api_url: str = _DEFAULT_API_URL,
        site: str = "stackoverflow",
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._api_url = api_url
        self._site = site
        self._headers = dict(_DEFAULT_HEADERS)
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
        """Search Stack Overflow questions for *query*, highest voted first."""
        params = {
            "q": query,
            "site": self._site,
            "order": "desc",
            "sort": "votes",
            "filter": "withbody",
        }
        try:
            response = await self._client.get(self._api_url, params=params, headers=self._headers)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise ProviderError(
                message="Timed out waiting for Stack Exchange",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                message=f"HTTP {exc.response.status_code} from Stack Exchange",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"Request to Stack Exchange failed: {type(exc).__name__}",
                provider_name=self.get_provider_name(),
            ) from exc
        except ValueError as exc:
            raise ProviderError(
                message="Stack Exchange returned a non-JSON response",
                provider_name=self.get_provider_name(),
            ) from exc

        results = self._parse_items(data)
        logger.debug(
            "stackoverflow_search_complete",
            query=query,
            result_count=len(results),
            quota_remaining=data.get("quota_remaining"),
        )
        return results

    def get_provider_name(self) -> str:
        return "stackoverflow"

    def is_available(self) -> bool:
        """Always available: anonymous Stack Exchange access needs no key."""
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _parse_items(self, data: Any) -> list[ResultItem]:
        if not isinstance(data, dict):
            raise ProviderError(
                message="Unexpected Stack Exchange payload shape",
                provider_name=self.get_provider_name(),
            )
        if "error_id" in data:
            raise ProviderError(
                message=f"Stack Exchange error {data.get('error_id')}: {data.get('error_name', '')}",
                provider_name=self.get_provider_name(),
            )

        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise ProviderError(
                message="Stack Exchange 'items' is not a list",
                provider_name=self.get_provider_name(),
            )

        results: list[ResultItem] = []
        for item in raw_items:
            if not isinstance(item, dict):
                continue
            results.append(
                ResultItem(
                    provider=self.get_provider_name(),
                    # Titles arrive HTML-escaped ("&quot;", "&#39;").
                    title=html.unescape(coerce_str(item.get("title"))),
                    link=coerce_str(item.get("link")),
                    score=coerce_int(item.get("score")),
                    body=coerce_str(item.get("body")),
                    created_at=epoch_to_datetime(item.get("creation_date")),
                    rank=len(results),
                )
            )
        return results
