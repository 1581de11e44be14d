"""Generic model invocation: call, parse, validate, retry."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from ..models.agent import AgentResponse
from ..models.provider import ModelRequest
from ..providers.base import ModelClient
from .config import AgentSettings
from .errors import classify_exception, shape_error
from .parsing import ResponseError
from .retry import Sleep, execute_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

Validator = Callable[[str], T]


def build_request(
    settings: AgentSettings,
    user_message: str,
    system_prompt: Optional[str] = None,
    temperature: Optional[float] = None,
    stop_sequences: Optional[tuple[str, ...]] = None,
) -> ModelRequest:
    return ModelRequest(
        system_prompt=system_prompt,
        user_message=user_message,
        model=settings.model,
        temperature=settings.temperature if temperature is None else temperature,
        max_tokens=settings.max_tokens,
        stop_sequences=stop_sequences,
        top_p=settings.top_p,
        top_k=settings.top_k,
    )


async def invoke_model(
    client: ModelClient,
    request: ModelRequest,
    validator: Validator[T],
    *,
    agent: str = "agent",
    max_retries: int = 3,
    retry_delay: float = 1.0,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[T]:
    """Call the model and return a validated result or a typed error.

    Each attempt is one vendor call followed by parse and shape validation.
    Transient vendor errors and unparseable replies are retried; terminal
    vendor errors and wrongly shaped replies are not.
    """

    async def attempt() -> AgentResponse[T]:
        start = time.monotonic()
        try:
            raw = await client.complete(request)
        except Exception as e:
            error = classify_exception(e)
            logger.error(
                "%s: model call failed with %s after %dms: %s",
                agent, error.code.value, (time.monotonic() - start) * 1000, error.message,
            )
            return AgentResponse.fail(error)

        try:
            data = validator(raw.text)
        except ResponseError as e:
            logger.error(
                "%s: rejected reply (%s, stop_reason=%s): %s",
                agent, e.error.code.value, raw.stop_reason, e.error.message,
            )
            return AgentResponse.fail(e.error)
        except Exception as e:
            error = shape_error(f"Unexpected reply structure: {type(e).__name__}: {e}")
            logger.error("%s: validator failed on reply (stop_reason=%s): %s", agent, raw.stop_reason, error.message)
            return AgentResponse.fail(error)

        return AgentResponse.ok(
            data, usage=raw.usage, model=raw.model, stop_reason=raw.stop_reason
        )

    return await execute_with_retry(
        attempt,
        max_retries=max_retries,
        retry_delay=retry_delay,
        sleep=sleep,
        label=agent,
    )


async def run_agent(
    client: ModelClient,
    settings: AgentSettings,
    request: ModelRequest,
    validator: Validator[T],
    *,
    agent: str,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[T]:
    """``invoke_model`` with retry bounds taken from ``settings``."""
    return await invoke_model(
        client,
        request,
        validator,
        agent=agent,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay_seconds,
        sleep=sleep,
    )
