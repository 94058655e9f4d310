"""HubSpot CRM integration -- stateless client and transient record shapes.

Provides:
- HubSpotClient: authenticated reads/creates against the CRM objects API
- EntityKind and the per-collection property allow-lists
- ContactSummary / DealSummary projections and AssociationLink
"""

from src.gateway.crm.client import HubSpotClient
from src.gateway.crm.schemas import (
    CONTACT_PROPERTIES,
    DEAL_PROPERTIES,
    MAX_PAGE_SIZE,
    PROPERTY_ALLOW_LIST,
    AssociationLink,
    ContactSummary,
    DealSummary,
    EntityKind,
)

__all__ = [
    "HubSpotClient",
    "EntityKind",
    "CONTACT_PROPERTIES",
    "DEAL_PROPERTIES",
    "MAX_PAGE_SIZE",
    "PROPERTY_ALLOW_LIST",
    "AssociationLink",
    "ContactSummary",
    "DealSummary",
]
