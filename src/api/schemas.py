"""Pydantic request/response schemas for the knowledge search API.

Defines the public contract for all REST endpoints: search, email
delivery, health, and provider listing.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# FastAPI uses these models for:
#
#   1. **Validation**: Incoming JSON is validated against the schema.
#      Invalid requests get a 422 error with details.
#   2. **Serialization**: Outgoing objects are converted to JSON
#      matching the schema (via response_model=...).
#   3. **Documentation**: OpenAPI docs at /docs are generated from them.
#
# Convention: Request schemas end with "Request", response schemas
# end with "Response".
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.models.search import ResultItem

# Same shape check the search page applies before sending.
_EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class SearchRequest(BaseModel):
    """A raw search query as typed by the user."""

    query: str = Field(..., max_length=500)


class SearchResponse(BaseModel):
    """Aggregate search results keyed by provider name."""

    query: str = Field(description="Normalized query the results are cached under")
    results: dict[str, list[ResultItem]]


class EmailResultsRequest(BaseModel):
    """A result set to be formatted and emailed.

    ``results`` is the ``results`` object of a previous
    :class:`SearchResponse`; every configured provider must be present.
    """

    email: str = Field(..., max_length=320, pattern=_EMAIL_PATTERN)
    query: str = Field(..., min_length=1, max_length=500)
    results: dict[str, list[ResultItem]]


class EmailResultsResponse(BaseModel):
    """Confirmation that an email was handed to the SMTP server."""

    message: str


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ProvidersResponse(BaseModel):
    """List of configured service providers and their availability."""

    providers: list[dict[str, Any]]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
