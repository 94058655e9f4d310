"""Prompt template for the CRM summary.

The bullet count, topic hint and word limit are instructions to the model
only; the output is returned unvalidated.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from src.gateway.crm.schemas import ContactSummary, DealSummary

SUMMARY_PROMPT_TEMPLATE = """
You are helping a smart thermostat company called Breezy.

Here is some sample data from their HubSpot CRM:

Contacts:
{contacts}

Deals (subscription conversions):
{deals}

Please:
- Give 3 short bullet points about what you see (e.g. number of customers, number of deals)
- Mention anything interesting about subscriptions or revenue
Keep it under 150 words.
"""


def serialize_records(records: Sequence[ContactSummary | DealSummary]) -> str:
    """Render projections as an indented JSON array."""
    return json.dumps([r.model_dump() for r in records], indent=2)


def build_summary_prompt(
    contacts: Sequence[ContactSummary],
    deals: Sequence[DealSummary],
) -> str:
    """Embed both projected collections into the summary template."""
    return SUMMARY_PROMPT_TEMPLATE.format(
        contacts=serialize_records(contacts),
        deals=serialize_records(deals),
    )
