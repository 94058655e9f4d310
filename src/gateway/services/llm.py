"""LLM completion client via LiteLLM Router.

Wraps a single named OpenAI model behind a one-entry Router with retries
disabled: one prompt in, one plain-text completion out, returned as-is (an
empty completion comes back as ""). A missing key, a provider or network
error, or a response without choices surfaces as SummaryGenerationError.
"""

from __future__ import annotations

import structlog
from litellm import Router

from src.gateway.config import Settings
from src.gateway.core.monitoring import track_upstream_call
from src.gateway.errors import SummaryGenerationError

logger = structlog.get_logger(__name__)


class CompletionClient:
    """Text completion against the configured summary model.

    Args:
        settings: Application settings; supplies OPENAI_API_KEY,
            SUMMARY_MODEL and LLM_TIMEOUT.
    """

    MODEL_GROUP = "summary"

    def __init__(self, settings: Settings) -> None:
        self.model_name = settings.SUMMARY_MODEL
        self._api_key = settings.OPENAI_API_KEY.strip()

        if not self._api_key:
            logger.warning("llm.no_api_key", hint="summary route will reject requests")
            self.router = None
            return

        self.router = Router(
            model_list=[
                {
                    "model_name": self.MODEL_GROUP,
                    "litellm_params": {
                        "model": f"openai/{self.model_name}",
                        "api_key": self._api_key,
                    },
                }
            ],
            num_retries=0,
            timeout=settings.LLM_TIMEOUT,
        )

    @property
    def is_configured(self) -> bool:
        return self.router is not None

    async def summarize(self, prompt: str) -> str:
        """Send ``prompt`` as a single user message and return the reply verbatim.

        Raises:
            ValueError: If the prompt is empty.
            SummaryGenerationError: If the call fails or returns no choices.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must be non-empty")
        if self.router is None:
            raise SummaryGenerationError("No LLM API key configured")

        try:
            async with track_upstream_call("openai", "summarize") as tracker:
                tracker["model"] = self.model_name
                response = await self.router.acompletion(
                    model=self.MODEL_GROUP,
                    messages=[{"role": "user", "content": prompt}],
                )
                usage = getattr(response, "usage", None)
                if usage:
                    tracker["prompt_tokens"] = usage.prompt_tokens or 0
                    tracker["completion_tokens"] = usage.completion_tokens or 0
        except Exception as exc:
            logger.error("llm.completion_failed", model=self.model_name, error=str(exc))
            raise SummaryGenerationError(f"Completion call failed: {exc}") from exc

        choices = getattr(response, "choices", None)
        if not choices:
            logger.error("llm.no_choices", model=self.model_name)
            raise SummaryGenerationError(f"Model {self.model_name} returned no choices")

        content = choices[0].message.content or ""
        logger.info("llm.completion_received", model=self.model_name, length=len(content))
        return content
