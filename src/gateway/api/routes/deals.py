"""HubSpot deal endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.gateway.api.deps import get_crm_client
from src.gateway.api.errors import unhandled_error_response, upstream_error_response
from src.gateway.crm.schemas import CreateDealRequest, EntityKind
from src.gateway.errors import UpstreamError

router = APIRouter(prefix="/api/deals", tags=["deals"])

LIST_PAGE_SIZE = 50


@router.get("")
async def list_deals(crm: Any = Depends(get_crm_client)):
    """Fetch one page of deals (fixed property set)."""
    try:
        return await crm.list_entities(EntityKind.DEALS, LIST_PAGE_SIZE)
    except UpstreamError as exc:
        return upstream_error_response("Failed to fetch deals", exc)
    except Exception as exc:
        return unhandled_error_response("Failed to fetch deals", exc)


@router.post("")
async def create_deal(body: CreateDealRequest, crm: Any = Depends(get_crm_client)):
    """Create a deal, associated with ``contactId`` when present."""
    # Falsy ids (None, "", 0) create the deal without an association
    contact_id = str(body.contact_id) if body.contact_id else None
    try:
        return await crm.create_deal(body.deal_properties, contact_id)
    except UpstreamError as exc:
        return upstream_error_response("Failed to create deal", exc)
    except Exception as exc:
        return unhandled_error_response("Failed to create deal", exc)
