"""Utility modules for the knowledge search service.

Available utility modules (all re-exported here for convenience):

- **errors** -- Exception hierarchy rooted at KnowledgeSearchError; callers
  tell invalid input apart from upstream failure by exception class.
- **concurrency** -- named fan-out/join over asyncio tasks with timeout
  and cancellation handling, used for the provider fan-out.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **text_normalizer** -- query normalization (cache key form) and
  plain-text snippet helpers for result bodies.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    EmailDeliveryError,
    InvalidQueryError,
    KnowledgeSearchError,
    ProviderError,
    StoreUnavailableError,
    UpstreamFailureError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import gather_named

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Text normalization ----------------------------------------------------
from src.utils.text_normalizer import make_snippet, normalize_query, strip_html

__all__ = [
    "ConfigurationError",
    "EmailDeliveryError",
    "InvalidQueryError",
    "KnowledgeSearchError",
    "ProviderError",
    "StoreUnavailableError",
    "UpstreamFailureError",
    "configure_logging",
    "gather_named",
    "get_logger",
    "make_snippet",
    "normalize_query",
    "strip_html",
]
