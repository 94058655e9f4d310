"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, optional
Sentry, the API router, /metrics, and the static frontend. Upstream clients
are built once here from the startup Settings and stored on app.state.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from src.gateway.api.errors import service_unavailable_handler
from src.gateway.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.gateway.api.router import router as api_router
from src.gateway.config import Settings, get_settings
from src.gateway.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.gateway.crm.client import HubSpotClient
from src.gateway.errors import ServiceUnavailableError
from src.gateway.services.llm import CompletionClient
from src.gateway.services.summary import SummaryFlow

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: validate credentials and init Sentry on startup."""
    settings: Settings = app.state.settings
    configure_structlog(settings)

    # Refuse to start without the CRM token, however the app was launched.
    settings.require_crm_token()

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    logger.info(
        "app.started",
        environment=settings.ENVIRONMENT.value,
        summary_enabled=app.state.completion_client.is_configured,
    )

    yield

    logger.info("app.stopped")


def create_app(
    settings: Settings | None = None,
    *,
    crm_client: HubSpotClient | None = None,
    completion_client: CompletionClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Startup settings; defaults to get_settings().
        crm_client: Prebuilt HubSpot client (defaults to one built from settings).
        completion_client: Prebuilt completion client (same default rule).
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="HubSpot Gateway API",
        version="0.1.0",
        description="Pass-through gateway between the Breezy frontend, HubSpot CRM and OpenAI",
        lifespan=lifespan,
    )

    crm_client = crm_client or HubSpotClient(settings)
    completion_client = completion_client or CompletionClient(settings)

    app.state.settings = settings
    app.state.crm_client = crm_client
    app.state.completion_client = completion_client
    app.state.summary_flow = SummaryFlow(crm=crm_client, completion=completion_client)

    # Middleware is added in reverse order (last added = outermost)

    # CORS middleware
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(ServiceUnavailableError, service_unavailable_handler)
    app.include_router(api_router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    # Static frontend last, so API routes win
    static_dir = Path(settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.info("app.static_dir_missing", static_dir=str(static_dir))

    return app
