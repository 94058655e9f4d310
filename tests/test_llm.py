"""Completion client tests.

Uses mocks for actual LLM calls to avoid API costs in tests.
Tests Router configuration, request shape, verbatim output, and error mapping.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.gateway.errors import SummaryGenerationError
from src.gateway.services.llm import CompletionClient


def _mock_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.model = "gpt-4.1-mini"
    response.usage = MagicMock()
    response.usage.prompt_tokens = 120
    response.usage.completion_tokens = 40
    return response


def test_router_configured_for_single_model_without_retries(settings):
    with patch("src.gateway.services.llm.Router") as MockRouter:
        client = CompletionClient(settings)

    assert client.is_configured
    kwargs = MockRouter.call_args.kwargs
    assert kwargs["num_retries"] == 0
    assert kwargs["timeout"] == settings.LLM_TIMEOUT
    (entry,) = kwargs["model_list"]
    assert entry["litellm_params"]["model"] == "openai/gpt-4.1-mini"
    assert entry["litellm_params"]["api_key"] == "test-openai-key"


def test_missing_key_leaves_client_unconfigured(settings_factory):
    with patch("src.gateway.services.llm.Router") as MockRouter:
        client = CompletionClient(settings_factory(OPENAI_API_KEY=""))

    assert not client.is_configured
    MockRouter.assert_not_called()


@pytest.mark.asyncio
async def test_summarize_returns_model_text_verbatim(settings):
    text = "  - Three customers\n- Two deals\n- Revenue is $240  "
    with patch("src.gateway.services.llm.Router") as MockRouter:
        MockRouter.return_value.acompletion = AsyncMock(return_value=_mock_response(text))
        client = CompletionClient(settings)

        result = await client.summarize("Summarize this CRM data")

    assert result == text
    call = MockRouter.return_value.acompletion.call_args
    assert call.kwargs["model"] == CompletionClient.MODEL_GROUP
    assert call.kwargs["messages"] == [{"role": "user", "content": "Summarize this CRM data"}]
    MockRouter.return_value.acompletion.assert_awaited_once()


@pytest.mark.asyncio
async def test_provider_error_becomes_summary_generation_error(settings):
    with patch("src.gateway.services.llm.Router") as MockRouter:
        MockRouter.return_value.acompletion = AsyncMock(side_effect=RuntimeError("rate limited"))
        client = CompletionClient(settings)

        with pytest.raises(SummaryGenerationError, match="rate limited"):
            await client.summarize("prompt")

    MockRouter.return_value.acompletion.assert_awaited_once()


@pytest.mark.asyncio
async def test_empty_output_returned_as_empty_string(settings):
    with patch("src.gateway.services.llm.Router") as MockRouter:
        MockRouter.return_value.acompletion = AsyncMock(return_value=_mock_response(""))
        client = CompletionClient(settings)

        assert await client.summarize("prompt") == ""


@pytest.mark.asyncio
async def test_null_content_returned_as_empty_string(settings):
    with patch("src.gateway.services.llm.Router") as MockRouter:
        MockRouter.return_value.acompletion = AsyncMock(return_value=_mock_response(None))
        client = CompletionClient(settings)

        assert await client.summarize("prompt") == ""


@pytest.mark.asyncio
async def test_response_without_choices_is_an_error(settings):
    response = _mock_response("unused")
    response.choices = []
    with patch("src.gateway.services.llm.Router") as MockRouter:
        MockRouter.return_value.acompletion = AsyncMock(return_value=response)
        client = CompletionClient(settings)

        with pytest.raises(SummaryGenerationError, match="no choices"):
            await client.summarize("prompt")


@pytest.mark.asyncio
async def test_unconfigured_client_raises_without_calling(settings_factory):
    client = CompletionClient(settings_factory(OPENAI_API_KEY=""))

    with pytest.raises(SummaryGenerationError):
        await client.summarize("prompt")


@pytest.mark.asyncio
async def test_empty_prompt_rejected(settings):
    with patch("src.gateway.services.llm.Router"):
        client = CompletionClient(settings)

    with pytest.raises(ValueError):
        await client.summarize("   ")
