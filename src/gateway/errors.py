"""Error taxonomy shared by the upstream clients, the summary flow and the routes.

- UpstreamError: HubSpot rejected the call (or could not be reached).
- SummaryGenerationError: the completion call failed for any reason.
- ConfigurationError: a required credential is missing.
- ServiceUnavailableError: a client was never attached to the app (503).

Nothing here is retried; route handlers translate these into JSON envelopes.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base class for errors raised by this service."""


class UpstreamError(GatewayError):
    """Raised when an upstream provider responds with a non-2xx status.

    Attributes:
        status_code: Provider HTTP status, or None when no response arrived.
        provider_body: Decoded provider body (JSON when possible, else text).
        provider: Short provider name, used in logs.
    """

    def __init__(
        self,
        status_code: int | None,
        provider_body: Any = None,
        message: str | None = None,
        provider: str = "hubspot",
    ) -> None:
        self.status_code = status_code
        self.provider_body = provider_body
        self.provider = provider
        super().__init__(
            message or f"{provider} request failed with status {status_code}"
        )

    @property
    def details(self) -> Any:
        """Provider body when present, otherwise the error message."""
        if self.provider_body is None or self.provider_body == "":
            return str(self)
        return self.provider_body


class SummaryGenerationError(GatewayError):
    """Raised when the completion service fails to produce a summary."""


class ConfigurationError(GatewayError):
    """Raised when a required credential is not configured."""


class ServiceUnavailableError(GatewayError):
    """Raised when a per-process client was never attached to the app."""
