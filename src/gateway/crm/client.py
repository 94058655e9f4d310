"""Async HTTP client wrapper for the HubSpot CRM v3 REST API.

Provides HubSpotClient, a stateless wrapper where one logical operation is
one HTTP round trip (except the contact -> deals lookup, which is an
associations read followed by a batch read that is skipped when the
contact has no deals). Follows the per-call httpx.AsyncClient pattern
used by the other REST wrappers in this codebase.

Nothing is retried: creates are not idempotent, and reads surface the
provider's status to the caller unchanged.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import Any

import httpx
import structlog

from src.gateway.config import Settings
from src.gateway.core.monitoring import track_upstream_call
from src.gateway.crm.schemas import (
    MAX_PAGE_SIZE,
    PROPERTY_ALLOW_LIST,
    AssociationLink,
    EntityKind,
)
from src.gateway.errors import UpstreamError

logger = structlog.get_logger(__name__)


def _decode_body(response: httpx.Response) -> Any:
    """Decode a provider body as JSON, falling back to raw text."""
    try:
        return response.json()
    except ValueError:
        return response.text


class HubSpotClient:
    """Async client for the HubSpot CRM objects API.

    Args:
        settings: Application settings; supplies the Private App token,
            API base URL, timeout and the deal -> contact association type.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    PROVIDER = "hubspot"

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = settings.HUBSPOT_API_BASE.rstrip("/")
        self._timeout = settings.HUBSPOT_TIMEOUT
        self._association_type_id = settings.HUBSPOT_DEAL_CONTACT_ASSOCIATION_TYPE_ID
        self._association_category = settings.HUBSPOT_DEAL_CONTACT_ASSOCIATION_CATEGORY
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {settings.HUBSPOT_ACCESS_TOKEN}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client for one call."""
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Issue one request and return the decoded JSON body.

        Raises:
            UpstreamError: On a non-2xx response (carrying the provider's
                status and body) or when HubSpot could not be reached
                (status_code None).
        """
        url = f"{self._base_url}{path}"
        async with track_upstream_call(self.PROVIDER, operation):
            try:
                async with self._client() as client:
                    if method == "GET":
                        response = await client.get(url, params=params)
                    else:
                        response = await client.post(url, params=params, json=json)
                    response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                body = _decode_body(exc.response)
                logger.warning(
                    "hubspot.request_rejected",
                    operation=operation,
                    status_code=exc.response.status_code,
                    details=body,
                )
                raise UpstreamError(
                    status_code=exc.response.status_code,
                    provider_body=body,
                    message=f"HubSpot {operation} failed with status {exc.response.status_code}",
                ) from exc
            except httpx.RequestError as exc:
                logger.warning("hubspot.request_failed", operation=operation, error=str(exc))
                raise UpstreamError(
                    status_code=None,
                    provider_body=str(exc),
                    message=f"HubSpot {operation} failed: {exc}",
                ) from exc
            return response.json()

    # ── Validation ──────────────────────────────────────────────────────────

    @staticmethod
    def _validate_read(kind: EntityKind, limit: int, properties: Iterable[str]) -> list[str]:
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValueError(f"limit must be an integer between 1 and {MAX_PAGE_SIZE}, got {limit!r}")
        allowed = PROPERTY_ALLOW_LIST[kind]
        requested = list(dict.fromkeys(properties))
        unknown = [p for p in requested if p not in allowed]
        if unknown:
            raise ValueError(f"properties not allowed for {kind.value}: {', '.join(unknown)}")
        return requested

    # ── Reads ───────────────────────────────────────────────────────────────

    async def list_entities(
        self,
        kind: EntityKind,
        limit: int,
        properties: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        """Fetch one page of a collection and return HubSpot's body verbatim.

        GET /crm/v3/objects/{kind}?limit=..&properties=a,b,c

        Args:
            kind: Collection to read.
            limit: Page size, 1..100.
            properties: Subset of the collection's allow-list; defaults to
                the full allow-list.

        Returns:
            The raw paged response ({"results": [...], "paging": {...}}).
        """
        kind = EntityKind(kind)
        requested = self._validate_read(
            kind, limit, PROPERTY_ALLOW_LIST[kind] if properties is None else properties
        )
        data = await self._request(
            f"list_{kind.value}",
            "GET",
            f"/crm/v3/objects/{kind.value}",
            params={"limit": limit, "properties": ",".join(requested)},
        )
        logger.info(
            "hubspot.entities_fetched",
            kind=kind.value,
            limit=limit,
            count=len(data.get("results") or []),
        )
        return data

    async def fetch_entities(
        self,
        kind: EntityKind,
        limit: int,
        properties: Iterable[str],
    ) -> list[dict[str, Any]]:
        """Fetch up to ``limit`` raw records of a collection."""
        data = await self.list_entities(kind, limit, properties)
        return list(data.get("results") or [])

    async def fetch_associated_deal_ids(self, contact_id: str) -> AssociationLink:
        """Read the deal ids associated with a contact, in provider order.

        GET /crm/v3/objects/contacts/{contact_id}/associations/deals
        """
        data = await self._request(
            "contact_deal_associations",
            "GET",
            f"/crm/v3/objects/contacts/{contact_id}/associations/deals",
        )
        deal_ids = tuple(str(r["id"]) for r in data.get("results") or [])
        return AssociationLink(contact_id=str(contact_id), deal_ids=deal_ids)

    async def batch_fetch_deals(
        self,
        ids: Collection[str],
        properties: Iterable[str],
    ) -> dict[str, Any]:
        """Batch-read deals by id and return HubSpot's body verbatim.

        POST /crm/v3/objects/deals/batch/read. An empty id collection
        returns {"results": []} without calling HubSpot.
        """
        if not ids:
            return {"results": []}
        requested = self._validate_read(EntityKind.DEALS, min(len(ids), MAX_PAGE_SIZE), properties)
        return await self._request(
            "batch_read_deals",
            "POST",
            "/crm/v3/objects/deals/batch/read",
            json={
                "inputs": [{"id": deal_id} for deal_id in ids],
                "properties": requested,
            },
        )

    async def fetch_contact_deals(self, contact_id: str) -> dict[str, Any]:
        """Return full deal records associated with a contact.

        Two states, decided once: with associations, exactly one batch read
        carrying every id; without, no batch read and {"results": []}.
        """
        link = await self.fetch_associated_deal_ids(contact_id)
        if not link.deal_ids:
            logger.info("hubspot.contact_has_no_deals", contact_id=link.contact_id)
            return {"results": []}
        logger.info(
            "hubspot.contact_deals_found",
            contact_id=link.contact_id,
            deal_count=len(link.deal_ids),
        )
        return await self.batch_fetch_deals(link.deal_ids, PROPERTY_ALLOW_LIST[EntityKind.DEALS])

    # ── Writes ──────────────────────────────────────────────────────────────

    async def create_entity(
        self,
        kind: EntityKind,
        properties: dict[str, Any],
        associations: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Create one CRM record. Not idempotent; never retried.

        POST /crm/v3/objects/{kind} with {"properties": ..., "associations": ...}.
        The associations key is sent only when ``associations`` is not None.
        """
        kind = EntityKind(kind)
        payload: dict[str, Any] = {"properties": properties}
        if associations is not None:
            payload["associations"] = associations
        data = await self._request(
            f"create_{kind.value}",
            "POST",
            f"/crm/v3/objects/{kind.value}",
            json=payload,
        )
        logger.info("hubspot.entity_created", kind=kind.value, id=data.get("id"))
        return data

    def deal_contact_association(self, contact_id: str) -> dict[str, Any]:
        """Association block linking a new deal to ``contact_id``."""
        return {
            "to": {"id": contact_id},
            "types": [
                {
                    "associationCategory": self._association_category,
                    "associationTypeId": self._association_type_id,
                }
            ],
        }

    async def create_deal(
        self,
        deal_properties: dict[str, Any],
        contact_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a deal, associated with ``contact_id`` when one is given."""
        associations = [self.deal_contact_association(contact_id)] if contact_id else []
        return await self.create_entity(EntityKind.DEALS, deal_properties, associations)
