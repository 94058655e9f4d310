"""CRM sample -> prompt -> completion summary flow.

SummaryFlow.generate() runs four fixed steps with no branching on data:
sample 10 contacts, sample 10 deals, render the prompt, ask the model.
CRM failures propagate as UpstreamError, completion failures as
SummaryGenerationError. No partial summary is ever returned.
"""

from __future__ import annotations

import structlog

from src.gateway.crm.client import HubSpotClient
from src.gateway.crm.schemas import (
    CONTACT_PROPERTIES,
    DEAL_PROPERTIES,
    ContactSummary,
    DealSummary,
    EntityKind,
)
from src.gateway.errors import ConfigurationError
from src.gateway.services.llm import CompletionClient
from src.gateway.services.prompts import build_summary_prompt

logger = structlog.get_logger(__name__)

SAMPLE_SIZE = 10
MISSING_KEY_MESSAGE = "Missing OPENAI_API_KEY in .env"


class SummaryFlow:
    """Summarize a live sample of CRM contacts and deals.

    Args:
        crm: HubSpot client used for the two sample reads.
        completion: Completion client used for the single model call.
    """

    def __init__(self, crm: HubSpotClient, completion: CompletionClient) -> None:
        self._crm = crm
        self._completion = completion

    async def sample_contacts(self) -> list[ContactSummary]:
        records = await self._crm.fetch_entities(
            EntityKind.CONTACTS, SAMPLE_SIZE, CONTACT_PROPERTIES
        )
        return [ContactSummary.from_record(r) for r in records]

    async def sample_deals(self) -> list[DealSummary]:
        records = await self._crm.fetch_entities(
            EntityKind.DEALS, SAMPLE_SIZE, DEAL_PROPERTIES
        )
        return [DealSummary.from_record(r) for r in records]

    async def generate(self) -> str:
        """Return the model's summary of the current CRM sample.

        Raises:
            ConfigurationError: No completion credential; raised before any
                network call.
            UpstreamError: A HubSpot read failed.
            SummaryGenerationError: The completion call failed.
        """
        if not self._completion.is_configured:
            raise ConfigurationError(MISSING_KEY_MESSAGE)

        contacts = await self.sample_contacts()
        deals = await self.sample_deals()
        prompt = build_summary_prompt(contacts, deals)

        logger.info(
            "summary.prompt_built",
            contact_count=len(contacts),
            deal_count=len(deals),
            prompt_length=len(prompt),
        )

        summary = await self._completion.summarize(prompt)
        logger.info("summary.generated", length=len(summary))
        return summary
