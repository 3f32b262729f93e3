"""Custom exception hierarchy for the knowledge search service.

All application exceptions inherit from :class:`KnowledgeSearchError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "stackoverflow", "reddit", "sqlite_cache") caused the
failure.

The hierarchy is organized by where the failure originates:

    KnowledgeSearchError  (base -- catch-all for any service error)
    +-- InvalidQueryError        (caller input: empty / whitespace query)
    +-- ProviderError            (one upstream search provider failed)
    +-- UpstreamFailureError     (the search could not be completed)
    |   +-- StoreUnavailableError  (cache backend unreachable)
    +-- EmailDeliveryError       (SMTP transport failure)
    +-- ConfigurationError       (startup / missing config)

Callers distinguish "your input was invalid" (InvalidQueryError) from "the
system could not complete the request" (UpstreamFailureError and its
subclasses) without inspecting messages.
"""

from __future__ import annotations


class KnowledgeSearchError(Exception):
    """Base exception for all knowledge search errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[reddit] HTTP 503``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Caller input
# ---------------------------------------------------------------------------


class InvalidQueryError(KnowledgeSearchError):
    """Raised when a search query is empty or whitespace-only.

    Terminal: retrying the same input can never succeed.
    """

    def __init__(
        self,
        message: str = "Invalid search query",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Upstream provider / storage errors
# ---------------------------------------------------------------------------


class ProviderError(KnowledgeSearchError):
    """Raised by a single search provider on transport, status or parse failure."""

    def __init__(
        self,
        message: str = "Search provider request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UpstreamFailureError(KnowledgeSearchError):
    """Raised when a search cannot be completed because a dependency failed.

    ``failed_providers`` lists every provider (or store) that failed, in
    the order the search service was configured with them.
    """

    def __init__(
        self,
        message: str = "Search could not be completed",
        provider_name: str | None = None,
        failed_providers: list[str] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        if failed_providers is None:
            failed_providers = [provider_name] if provider_name else []
        self._failed_providers = list(failed_providers)

    @property
    def failed_providers(self) -> list[str]:
        return list(self._failed_providers)


class StoreUnavailableError(UpstreamFailureError):
    """Raised when the cache backend cannot be read from or written to."""

    def __init__(
        self,
        message: str = "Cache store is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Delivery / configuration errors
# ---------------------------------------------------------------------------


class EmailDeliveryError(KnowledgeSearchError):
    """Raised when a formatted result email cannot be handed to the SMTP server."""

    def __init__(
        self,
        message: str = "Failed to send email",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(KnowledgeSearchError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
