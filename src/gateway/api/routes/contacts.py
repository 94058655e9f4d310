"""HubSpot contact endpoints.

Lists, creates, and looks up the deals of contacts. Response bodies are
HubSpot's own, forwarded verbatim.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.gateway.api.deps import get_crm_client
from src.gateway.api.errors import unhandled_error_response, upstream_error_response
from src.gateway.crm.schemas import CreateContactRequest, EntityKind
from src.gateway.errors import UpstreamError

router = APIRouter(prefix="/api/contacts", tags=["contacts"])

LIST_PAGE_SIZE = 50


@router.get("")
async def list_contacts(crm: Any = Depends(get_crm_client)):
    """Fetch one page of contacts (fixed property set)."""
    try:
        return await crm.list_entities(EntityKind.CONTACTS, LIST_PAGE_SIZE)
    except UpstreamError as exc:
        return upstream_error_response("Failed to fetch contacts", exc)
    except Exception as exc:
        return unhandled_error_response("Failed to fetch contacts", exc)


@router.post("")
async def create_contact(body: CreateContactRequest, crm: Any = Depends(get_crm_client)):
    """Create a contact from an opaque property bag."""
    try:
        return await crm.create_entity(EntityKind.CONTACTS, body.properties)
    except UpstreamError as exc:
        return upstream_error_response("Failed to create contact", exc)
    except Exception as exc:
        return unhandled_error_response("Failed to create contact", exc)


@router.get("/{contact_id}/deals")
async def list_contact_deals(contact_id: str, crm: Any = Depends(get_crm_client)):
    """Full records of the deals associated with a contact.

    Returns {"results": []} without a batch read when there are none.
    """
    try:
        return await crm.fetch_contact_deals(contact_id)
    except UpstreamError as exc:
        return upstream_error_response("Failed to fetch deals for contact", exc)
    except Exception as exc:
        return unhandled_error_response("Failed to fetch deals for contact", exc)
