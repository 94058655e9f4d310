"""AI summary endpoint.

Runs the CRM sample -> prompt -> completion flow and returns the model's
text as {"summary": ...}.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from src.gateway.api.deps import get_summary_flow
from src.gateway.api.errors import error_response, upstream_error_response
from src.gateway.errors import ConfigurationError, UpstreamError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])

FAILURE_MESSAGE = "Failed to generate AI summary"


@router.get("/summary")
async def ai_summary(flow: Any = Depends(get_summary_flow)):
    """Summarize a live sample of contacts and deals."""
    try:
        summary = await flow.generate()
    except ConfigurationError as exc:
        logger.error("summary.not_configured", error=str(exc))
        return error_response(str(exc))
    except UpstreamError as exc:
        return upstream_error_response(FAILURE_MESSAGE, exc)
    except Exception:
        logger.error("summary.failed", exc_info=True)
        return error_response(FAILURE_MESSAGE)
    return {"summary": summary}
