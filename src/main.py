"""Knowledge search FastAPI application entry point.

Wires together the cache, search providers, services, and routes via
dependency injection.  Loads configuration from ``.env`` and
``config/config.yaml``, configures structured logging, and owns the
process-wide resources (cache connection, shared HTTP client) for the
lifetime of the application.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.search_provider import ISearchProvider
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.sqlite_cache import SQLiteCacheProvider
from src.providers.search.reddit_provider import RedditSearchProvider
from src.providers.search.stackoverflow_provider import StackOverflowSearchProvider
from src.services.email_service import EmailService
from src.services.output_formatter import OutputFormatter
from src.services.search_service import SearchService
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

_APP_VERSION = "0.1.0"
_DEFAULT_PROVIDERS = ["stackoverflow", "reddit"]

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component factories
# ---------------------------------------------------------------------------


def _build_cache_provider(app_settings: Settings) -> ICacheProvider:
    """Construct the cache backend named by ``CACHE_BACKEND``."""
    backend = app_settings.cache_backend.lower()
    if backend == "sqlite":
        return SQLiteCacheProvider(db_path=app_settings.cache_db_path)
    if backend == "memory":
        return MemoryCacheProvider(max_size=app_settings.cache_max_size)
    raise ConfigurationError(
        f"Unknown cache backend {app_settings.cache_backend!r}; expected 'sqlite' or 'memory'"
    )


def _build_search_providers(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None,
    enabled: list[str] | None = None,
) -> list[ISearchProvider]:
    """Construct the enabled search providers in configured order."""
    factories = {
        "stackoverflow": lambda: StackOverflowSearchProvider(
            http_client=http_client,
            api_url=app_settings.stackexchange_api_url,
            site=app_settings.stackexchange_site,
            timeout=app_settings.http_timeout_seconds,
        ),
        "reddit": lambda: RedditSearchProvider(
            http_client=http_client,
            search_url=app_settings.reddit_search_url,
            limit=app_settings.reddit_result_limit,
            user_agent=app_settings.reddit_user_agent,
            timeout=app_settings.http_timeout_seconds,
        ),
    }

    names = enabled or _DEFAULT_PROVIDERS
    unknown = [name for name in names if name not in factories]
    if unknown:
        raise ConfigurationError(f"Unknown search providers in config: {unknown}")
    return [factories[name]() for name in names]


def build_search_service(
    app_settings: Settings,
    cache: ICacheProvider,
    providers: list[ISearchProvider],
) -> SearchService:
    """Construct the search service from settings and prebuilt components."""
    return SearchService(
        providers=providers,
        cache=cache,
        ttl_seconds=app_settings.cache_ttl_seconds,
        timeout=app_settings.get_search_timeout(),
    )


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.http_timeout_seconds),
        follow_redirects=True,
    )
    enabled = app_config.get("providers", {}).get("enabled")

    cache = _build_cache_provider(app_settings)
    search_providers = _build_search_providers(app_settings, http_client, enabled)

    return {
        "http_client": http_client,
        "cache": cache,
        "search_providers": search_providers,
        "search_service": build_search_service(app_settings, cache, search_providers),
        "email_service": EmailService(settings=app_settings),
        "output_formatter": OutputFormatter(),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Open the cache and build services on startup; release them on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    cache: ICacheProvider = components["cache"]

    try:
        await cache.initialize()
        _logger.info(
            "app_startup",
            version=_APP_VERSION,
            environment=settings.app_env,
            cache=cache.get_provider_name(),
            providers=components["search_service"].provider_names(),
            cache_ttl_seconds=settings.cache_ttl_seconds,
        )
        yield
    finally:
        await cache.close()
        for provider in components["search_providers"]:
            await provider.aclose()
        http_client: httpx.AsyncClient = components["http_client"]
        await http_client.aclose()
        _logger.info("app_shutdown", message="Cache, providers, and HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Knowledge Search API",
        version=_APP_VERSION,
        description=(
            "Search Stack Overflow and Reddit with one query. Combined results "
            "are cached for an hour and can be emailed as a formatted digest."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
