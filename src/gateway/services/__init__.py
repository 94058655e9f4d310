"""Completion client, prompt template and the CRM summary flow."""

from src.gateway.services.llm import CompletionClient
from src.gateway.services.summary import SummaryFlow

__all__ = ["CompletionClient", "SummaryFlow"]
