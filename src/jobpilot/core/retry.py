"""Retry-with-backoff executor for agent operations."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from ..models.agent import AgentResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


async def execute_with_retry(
    operation: Callable[[], Awaitable[AgentResponse[T]]],
    max_retries: int = 3,
    retry_delay: float = 1.0,
    sleep: Optional[Sleep] = None,
    label: str = "agent",
) -> AgentResponse[T]:
    """Run ``operation`` until it succeeds or fails terminally.

    At most ``max_retries`` attempts are made, one after another. A failure
    whose error is not retryable is returned at once. Between attempts the
    executor waits ``retry_delay * attempt`` seconds (linear backoff). When
    every attempt fails, the last failure is returned.
    """
    sleep = sleep or asyncio.sleep
    attempts = max(1, max_retries)
    result: Optional[AgentResponse[T]] = None

    for attempt in range(1, attempts + 1):
        result = await operation()

        if result.success:
            return result

        error = result.error
        if error is None or not error.retryable:
            return result

        if attempt < attempts:
            logger.info(
                "Retrying %s after %s (attempt %d/%d)",
                label, error.code.value, attempt, attempts,
            )
            await sleep(retry_delay * attempt)

    return result
