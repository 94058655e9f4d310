"""Tests for the CRM sample -> prompt -> completion summary flow."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.gateway.crm.schemas import CONTACT_PROPERTIES, DEAL_PROPERTIES, ContactSummary, DealSummary, EntityKind
from src.gateway.errors import ConfigurationError, SummaryGenerationError, UpstreamError
from src.gateway.services.llm import CompletionClient
from src.gateway.services.prompts import build_summary_prompt
from src.gateway.services.summary import MISSING_KEY_MESSAGE, SAMPLE_SIZE, SummaryFlow


@pytest.fixture
def crm(records):
    """Mock HubSpotClient returning 3 contacts and 0 deals."""
    contacts = [
        records.contact("1", "Ada", "Lovelace", "ada@example.com"),
        records.contact("2", "Grace", "Hopper", "grace@example.com"),
        records.contact("3", "Alan", "Turing", "alan@example.com"),
    ]

    async def fetch_entities(kind, limit, properties):
        return contacts if kind == EntityKind.CONTACTS else []

    mock = MagicMock()
    mock.fetch_entities = AsyncMock(side_effect=fetch_entities)
    return mock


class TestSummaryFlow:
    """SummaryFlow.generate() orchestration."""

    @pytest.mark.asyncio
    async def test_samples_with_fixed_limit_and_allow_lists(self, crm, completion_client):
        await SummaryFlow(crm, completion_client).generate()

        calls = crm.fetch_entities.call_args_list
        assert [c.args for c in calls] == [
            (EntityKind.CONTACTS, SAMPLE_SIZE, CONTACT_PROPERTIES),
            (EntityKind.DEALS, SAMPLE_SIZE, DEAL_PROPERTIES),
        ]
        assert SAMPLE_SIZE == 10

    @pytest.mark.asyncio
    async def test_three_contacts_zero_deals_prompt(self, crm, completion_client):
        result = await SummaryFlow(crm, completion_client).generate()

        completion_client.summarize.assert_awaited_once()
        prompt = completion_client.summarize.call_args.args[0]

        contacts_block = prompt.split("Contacts:\n", 1)[1].split("\n\nDeals", 1)[0]
        assert [c["id"] for c in json.loads(contacts_block)] == ["1", "2", "3"]
        assert "Deals (subscription conversions):\n[]\n" in prompt
        assert result == completion_client.summarize.return_value

    @pytest.mark.asyncio
    async def test_prompt_omits_requested_but_unprojected_fields(self, crm, completion_client):
        await SummaryFlow(crm, completion_client).generate()

        prompt = completion_client.summarize.call_args.args[0]
        assert "555-0100" not in prompt
        assert "phone" not in prompt
        assert "address" not in prompt

    @pytest.mark.asyncio
    async def test_output_returned_unmodified(self, crm, completion_client):
        completion_client.summarize.return_value = "one bullet only, well over the word budget " * 20

        result = await SummaryFlow(crm, completion_client).generate()

        assert result == "one bullet only, well over the word budget " * 20

    @pytest.mark.asyncio
    async def test_missing_completion_key_makes_no_calls(self, crm):
        completion = MagicMock(spec=CompletionClient)
        completion.is_configured = False

        with pytest.raises(ConfigurationError, match=MISSING_KEY_MESSAGE):
            await SummaryFlow(crm, completion).generate()

        crm.fetch_entities.assert_not_called()
        completion.summarize.assert_not_called()

    @pytest.mark.asyncio
    async def test_crm_failure_aborts_before_completion(self, completion_client):
        crm = MagicMock()
        crm.fetch_entities = AsyncMock(side_effect=UpstreamError(401, {"message": "expired token"}))

        with pytest.raises(UpstreamError) as exc_info:
            await SummaryFlow(crm, completion_client).generate()

        assert exc_info.value.status_code == 401
        completion_client.summarize.assert_not_called()

    @pytest.mark.asyncio
    async def test_completion_failure_propagates(self, crm, completion_client):
        completion_client.summarize.side_effect = SummaryGenerationError("boom")

        with pytest.raises(SummaryGenerationError):
            await SummaryFlow(crm, completion_client).generate()


class TestPrompt:
    """build_summary_prompt rendering."""

    def test_instructions_present(self):
        prompt = build_summary_prompt([], [])

        assert "smart thermostat company called Breezy" in prompt
        assert "3 short bullet points" in prompt
        assert "subscriptions or revenue" in prompt
        assert "Keep it under 150 words." in prompt

    def test_records_serialized_with_two_space_indent(self):
        prompt = build_summary_prompt(
            [ContactSummary(id="1", firstname="Ada")],
            [DealSummary(id="9", dealname="Pro", amount="99", dealstage="closedwon")],
        )

        assert '[\n  {\n    "id": "1",\n    "firstname": "Ada",' in prompt
        assert '"lastname": null' in prompt
        assert '"dealstage": "closedwon"' in prompt
