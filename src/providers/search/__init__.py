"""Search provider implementations.

One adapter per upstream knowledge source.  Both speak plain HTTPS + JSON
through a shared ``httpx.AsyncClient`` and decode their own payload shapes
into ResultItem objects; a third source only needs a new ISearchProvider
implementation registered in ``src/main.py``.
"""

from src.providers.search.reddit_provider import RedditSearchProvider
from src.providers.search.stackoverflow_provider import StackOverflowSearchProvider

__all__ = ["RedditSearchProvider", "StackOverflowSearchProvider"]
