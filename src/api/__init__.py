"""Knowledge search API layer: routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    EmailResultsRequest,
    EmailResultsResponse,
    ErrorResponse,
    HealthResponse,
    ProvidersResponse,
    SearchRequest,
    SearchResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "EmailResultsRequest",
    "EmailResultsResponse",
    "ErrorResponse",
    "HealthResponse",
    "ProvidersResponse",
    "SearchRequest",
    "SearchResponse",
]
