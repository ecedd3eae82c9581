"""
Mapping of scoring failures onto HTTP responses.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import HTTPException

from horizon_risk.core.config import settings
from horizon_risk.core.errors import ScoringError

T = TypeVar("T")


async def run_scoring_call(
    awaitable: Awaitable[T], operation: str, timeout: float | None = None
) -> T:
    """
    Await a service call within the scoring timeout.

    Domain errors become HTTP errors carrying ``{"error", "message"}``;
    a timeout becomes 504.
    """
    try:
        return await asyncio.wait_for(
            awaitable, timeout=timeout or settings.SCORING_TIMEOUT_SECONDS
        )
    except asyncio.TimeoutError:
        raise HTTPException(
            status_code=504,
            detail={"error": "timeout", "message": f"{operation} timed out"},
        )
    except ScoringError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_payload())
