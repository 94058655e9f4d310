"""Pydantic schemas for the HubSpot CRM pass-through.

Defines:
- EntityKind: the CRM object collections this service reads and writes
- Property allow-lists requested from HubSpot per collection
- ContactSummary / DealSummary: projections of raw records used in prompts
- AssociationLink: contact -> deal ids from the associations endpoint
- Request bodies for the create routes (opaque property bags)

Raw HubSpot records stay plain dicts; only the projections are typed.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    """HubSpot CRM object collections (path segment under /crm/v3/objects)."""

    CONTACTS = "contacts"
    DEALS = "deals"


CONTACT_PROPERTIES: tuple[str, ...] = ("firstname", "lastname", "email", "phone", "address")
DEAL_PROPERTIES: tuple[str, ...] = ("dealname", "amount", "dealstage", "closedate", "pipeline")

PROPERTY_ALLOW_LIST: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.CONTACTS: CONTACT_PROPERTIES,
    EntityKind.DEALS: DEAL_PROPERTIES,
}

# HubSpot caps list and batch reads at 100 records per page.
MAX_PAGE_SIZE = 100


# ── Projections ─────────────────────────────────────────────────────────────


class ContactSummary(BaseModel):
    """Contact projection. phone/address are requested but never projected."""

    model_config = ConfigDict(frozen=True)

    id: str
    firstname: str | None = None
    lastname: str | None = None
    email: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ContactSummary:
        props = record.get("properties") or {}
        return cls(
            id=str(record["id"]),
            firstname=props.get("firstname"),
            lastname=props.get("lastname"),
            email=props.get("email"),
        )


class DealSummary(BaseModel):
    """Deal projection. closedate/pipeline are requested but never projected."""

    model_config = ConfigDict(frozen=True)

    id: str
    dealname: str | None = None
    amount: str | None = None
    dealstage: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> DealSummary:
        props = record.get("properties") or {}
        amount = props.get("amount")
        return cls(
            id=str(record["id"]),
            dealname=props.get("dealname"),
            amount=str(amount) if amount is not None else None,
            dealstage=props.get("dealstage"),
        )


class AssociationLink(BaseModel):
    """Deal ids associated with one contact, in provider order."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    contact_id: str = Field(alias="contactId")
    deal_ids: tuple[str, ...] = Field(default=(), alias="dealIds")


# ── Request Schemas ─────────────────────────────────────────────────────────


class CreateContactRequest(BaseModel):
    """Body for POST /api/contacts. Properties are forwarded to HubSpot as-is."""

    properties: dict[str, Any]


class CreateDealRequest(BaseModel):
    """Body for POST /api/deals."""

    model_config = ConfigDict(populate_by_name=True)

    deal_properties: dict[str, Any] = Field(alias="dealProperties")
    contact_id: str | int | None = Field(default=None, alias="contactId")
