"""FastAPI dependencies that hand route handlers the per-process clients.

Clients are built once by the app factory from the startup Settings and
stored on app.state; handlers never read configuration themselves.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request

from src.gateway.errors import ServiceUnavailableError


def _from_state(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise ServiceUnavailableError(f"{name} not initialized")
    return value


def get_crm_client(request: Request) -> Any:
    """HubSpotClient from app.state, 503 if not available."""
    return _from_state(request, "crm_client")


def get_summary_flow(request: Request) -> Any:
    """SummaryFlow from app.state, 503 if not available."""
    return _from_state(request, "summary_flow")
