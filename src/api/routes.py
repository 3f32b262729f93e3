"""FastAPI API routes for the knowledge search service.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                  Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/search            POST    Cache-aside search across providers
# /api/v1/email-results     POST    Format a result set and email it
# /api/v1/health            GET     Health check + provider status
# /api/v1/providers         GET     List configured providers
#
# Domain errors (InvalidQueryError, UpstreamFailureError, ...) are not
# caught here; ErrorHandlingMiddleware turns them into JSON responses.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.schemas import (
    EmailResultsRequest,
    EmailResultsResponse,
    ErrorResponse,
    HealthResponse,
    ProvidersResponse,
    SearchRequest,
    SearchResponse,
)
from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.search_provider import ISearchProvider
from src.models.search import AggregateResult
from src.services.email_service import EmailService
from src.services.output_formatter import OutputFormatter
from src.services.search_service import SearchService
from src.utils.errors import StoreUnavailableError
from src.utils.logging import get_logger
from src.utils.text_normalizer import normalize_query

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_APP_VERSION = "0.1.0"
# Never written; reading it exercises the cache backend end to end.
_HEALTH_PROBE_KEY = "__health_probe__"


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_search_service(request: Request) -> SearchService:
    """Return the search service from application state."""
    return request.app.state.search_service


def _get_email_service(request: Request) -> EmailService:
    """Return the email service from application state."""
    return request.app.state.email_service


def _get_formatter(request: Request) -> OutputFormatter:
    """Return the output formatter from application state."""
    return request.app.state.output_formatter


def _get_cache(request: Request) -> ICacheProvider:
    """Return the cache provider from application state."""
    return request.app.state.cache


def _get_search_providers(request: Request) -> list[ISearchProvider]:
    """Return the configured search providers from application state."""
    return request.app.state.search_providers


SearchServiceDep = Annotated[SearchService, Depends(_get_search_service)]
EmailServiceDep = Annotated[EmailService, Depends(_get_email_service)]
FormatterDep = Annotated[OutputFormatter, Depends(_get_formatter)]
CacheDep = Annotated[ICacheProvider, Depends(_get_cache)]
SearchProvidersDep = Annotated[list[ISearchProvider], Depends(_get_search_providers)]


# ---------------------------------------------------------------------------
# Search endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Search all providers, served from cache when fresh",
)
async def search(body: SearchRequest, search_service: SearchServiceDep) -> SearchResponse:
    """Return Stack Overflow and Reddit results for a query."""
    result = await search_service.search(body.query)
    return SearchResponse(query=normalize_query(body.query), results=result.results)


@router.post(
    "/email-results",
    response_model=EmailResultsResponse,
    responses={
        400: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Email a formatted copy of a result set",
)
async def email_results(
    body: EmailResultsRequest,
    search_service: SearchServiceDep,
    email_service: EmailServiceDep,
    formatter: FormatterDep,
) -> EmailResultsResponse:
    """Format the submitted results and send them to the given address."""
    if not email_service.is_enabled():
        raise HTTPException(status_code=503, detail="Email delivery is not configured")

    missing = [name for name in search_service.provider_names() if name not in body.results]
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid results format: missing {', '.join(missing)}",
        )

    document = formatter.format_for_email(AggregateResult(results=body.results), body.query)
    await email_service.send(body.email, document)
    return EmailResultsResponse(message="Email sent successfully")


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(
    cache: CacheDep,
    providers: SearchProvidersDep,
    email_service: EmailServiceDep,
) -> HealthResponse:
    """Return application health, version, and dependency availability."""
    status_map: dict[str, Any] = {
        provider.get_provider_name(): provider.is_available() for provider in providers
    }

    try:
        await cache.get(_HEALTH_PROBE_KEY)
        status_map["cache"] = True
    except StoreUnavailableError as exc:
        _logger.warning("health_cache_unavailable", error=str(exc))
        status_map["cache"] = False
    status_map["email"] = email_service.is_enabled()

    # Every search reads the cache first, so a dead cache fails all searches.
    if not status_map["cache"]:
        status = "unhealthy"
    elif all(provider.is_available() for provider in providers):
        status = "healthy"
    else:
        status = "degraded"

    return HealthResponse(status=status, version=_APP_VERSION, providers=status_map)


@router.get(
    "/providers",
    response_model=ProvidersResponse,
    summary="List configured providers",
)
async def list_providers(
    cache: CacheDep,
    providers: SearchProvidersDep,
    email_service: EmailServiceDep,
) -> ProvidersResponse:
    """List all configured providers, their types, and availability status."""
    listing: list[dict[str, Any]] = [
        {"name": provider.get_provider_name(), "type": "search", "available": provider.is_available()}
        for provider in providers
    ]
    listing.append({"name": cache.get_provider_name(), "type": "cache", "available": True})
    listing.append({"name": "smtp", "type": "email", "available": email_service.is_enabled()})
    return ProvidersResponse(providers=listing)
