"""JSON error envelopes returned by the route handlers.

Every handler catches at its own boundary and returns one of these; stack
traces are logged, never sent to the caller.
"""

from __future__ import annotations

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from src.gateway.errors import ServiceUnavailableError, UpstreamError

logger = structlog.get_logger(__name__)


def upstream_error_response(message: str, exc: UpstreamError) -> JSONResponse:
    """Provider status (500 when absent) with {error, details}."""
    logger.error(
        "route.upstream_error",
        error=message,
        status_code=exc.status_code,
        details=exc.details,
    )
    return JSONResponse(
        status_code=exc.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message, "details": exc.details},
    )


def unhandled_error_response(message: str, exc: Exception) -> JSONResponse:
    """500 with {error, details} for any failure that is not an UpstreamError."""
    logger.error("route.unhandled_error", error=message, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message, "details": str(exc)},
    )


def error_response(message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> JSONResponse:
    """Bare {error} envelope."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def service_unavailable_handler(request: Request, exc: ServiceUnavailableError) -> JSONResponse:
    """503 with {error, details} when a dependency finds no client on app.state."""
    logger.error("route.service_unavailable", path=request.url.path, details=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Service unavailable", "details": str(exc)},
    )
