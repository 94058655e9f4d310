"""Shared fixtures for gateway tests.

Provides:
- Settings with test credentials (no .env lookup)
- FakeHubSpot: an httpx.MockTransport handler that records every request
- A real HubSpotClient wired to the fake transport
- A mocked CompletionClient
- FastAPI app + async HTTP client (ASGITransport, lifespan not run)
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.gateway.config import Settings
from src.gateway.crm.client import HubSpotClient
from src.gateway.main import create_app


class FakeHubSpot:
    """Scripted HubSpot API: (method, path) -> (status, json body)."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status_code: int = 200, json: Any = None) -> None:
        self.routes[(method, path)] = (status_code, json)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"status": "error", "message": "resource not found"})
        status_code, body = self.routes[key]
        return httpx.Response(status_code, json=body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "HUBSPOT_ACCESS_TOKEN": "test-hubspot-token",
        "HUBSPOT_API_BASE": "https://api.hubapi.test",
        "OPENAI_API_KEY": "test-openai-key",
        "STATIC_DIR": "does-not-exist",
        "SHUTDOWN_TIMEOUT_SECONDS": 0.5,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def contact_record(contact_id: str, first: str, last: str, email: str) -> dict:
    return {
        "id": contact_id,
        "properties": {
            "firstname": first,
            "lastname": last,
            "email": email,
            "phone": "555-0100",
            "address": "1 Main St",
        },
        "archived": False,
    }


def deal_record(deal_id: str, name: str, amount: str, stage: str) -> dict:
    return {
        "id": deal_id,
        "properties": {
            "dealname": name,
            "amount": amount,
            "dealstage": stage,
            "closedate": "2026-03-01T00:00:00Z",
            "pipeline": "default",
        },
        "archived": False,
    }


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_hubspot() -> FakeHubSpot:
    return FakeHubSpot()


@pytest.fixture
def crm_client(settings, fake_hubspot) -> HubSpotClient:
    return HubSpotClient(settings, transport=httpx.MockTransport(fake_hubspot))


@pytest.fixture
def completion_client() -> MagicMock:
    """Mocked CompletionClient that is configured and returns fixed text."""
    client = MagicMock()
    client.is_configured = True
    client.summarize = AsyncMock(return_value="- 2 customers\n- 1 deal\n- $99 subscription")
    return client


@pytest.fixture
def app(settings, crm_client, completion_client):
    return create_app(settings, crm_client=crm_client, completion_client=completion_client)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def settings_factory():
    """Build Settings with test defaults plus overrides."""
    return make_settings


@pytest.fixture
def records():
    """Builders for raw HubSpot contact/deal records."""
    return SimpleNamespace(contact=contact_record, deal=deal_record)
