"""Error classification for model calls.

This taxonomy decides what the retry executor treats as transient
(retryable) and what it treats as terminal.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from ..models.agent import AgentError, ErrorCode, ErrorType
from ..utils.sanitize import sanitize_error
from .exceptions import MissingAPIKeyError


def classify_exception(exc: BaseException) -> AgentError:
    """Map a transport or vendor exception to an ``AgentError``."""
    if isinstance(exc, httpx.HTTPStatusError):
        return _classify_status(exc)

    if isinstance(exc, MissingAPIKeyError):
        return AgentError(
            code=ErrorCode.AUTHENTICATION_ERROR,
            message=str(exc),
            type=ErrorType.API,
            retryable=False,
            details={"env_var": exc.env_var},
        )

    if isinstance(exc, (httpx.ConnectError, httpx.TimeoutException, ConnectionRefusedError, TimeoutError)):
        return AgentError(
            code=ErrorCode.NETWORK_ERROR,
            message="Network error. Please check your connection.",
            type=ErrorType.NETWORK,
            retryable=True,
            details={"exception": type(exc).__name__},
        )

    return AgentError(
        code=ErrorCode.UNKNOWN_ERROR,
        message=sanitize_error(str(exc)) or "An unknown error occurred.",
        type=ErrorType.API,
        retryable=False,
        details={"exception": type(exc).__name__},
    )


def _classify_status(exc: httpx.HTTPStatusError) -> AgentError:
    status = exc.response.status_code
    details: dict[str, Any] = {"status": status}

    if status == 429:
        retry_after = exc.response.headers.get("retry-after")
        if retry_after is not None:
            details["retry_after"] = retry_after
        return AgentError(
            code=ErrorCode.RATE_LIMIT_ERROR,
            message="API rate limit exceeded. Please try again later.",
            type=ErrorType.RATE_LIMIT,
            retryable=True,
            details=details,
        )
    if status == 401:
        return AgentError(
            code=ErrorCode.AUTHENTICATION_ERROR,
            message="Invalid API key. Please check your ANTHROPIC_API_KEY.",
            type=ErrorType.API,
            retryable=False,
            details=details,
        )
    if status == 400:
        return AgentError(
            code=ErrorCode.VALIDATION_ERROR,
            message=_vendor_message(exc.response) or "Invalid request parameters.",
            type=ErrorType.VALIDATION,
            retryable=False,
            details=details,
        )
    if status >= 500:
        return AgentError(
            code=ErrorCode.SERVER_ERROR,
            message="Model API server error. Please try again.",
            type=ErrorType.API,
            retryable=True,
            details=details,
        )
    return AgentError(
        code=ErrorCode.API_ERROR,
        message=_vendor_message(exc.response) or f"API error (HTTP {status}).",
        type=ErrorType.API,
        retryable=False,
        details=details,
    )


def _vendor_message(response: httpx.Response) -> Optional[str]:
    """Pull ``error.message`` out of a vendor error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return sanitize_error(response.text[:500]) or None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return sanitize_error(str(error["message"]))
    return None


def invalid_input(errors: list[str]) -> AgentError:
    return AgentError(
        code=ErrorCode.INVALID_INPUT,
        message=f"Validation failed: {', '.join(errors)}",
        type=ErrorType.VALIDATION,
        retryable=False,
        details={"errors": errors},
    )


def parse_error(message: str, raw_text: str = "") -> AgentError:
    return AgentError(
        code=ErrorCode.PARSE_ERROR,
        message=message,
        type=ErrorType.AI,
        retryable=True,
        details={"response_preview": raw_text[:1000]} if raw_text else None,
    )


def shape_error(message: str) -> AgentError:
    return AgentError(
        code=ErrorCode.VALIDATION_ERROR,
        message=message,
        type=ErrorType.VALIDATION,
        retryable=False,
    )


def fetch_error(message: str, url: str) -> AgentError:
    return AgentError(
        code=ErrorCode.FETCH_ERROR,
        message=message,
        type=ErrorType.NETWORK,
        retryable=False,
        details={"url": url},
    )
