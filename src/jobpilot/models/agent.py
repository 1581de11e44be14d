"""Agent result and error data models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, model_validator

from .provider import TokenUsage

T = TypeVar("T")


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    PARSE_ERROR = "PARSE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    FETCH_ERROR = "FETCH_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ErrorType(str, Enum):
    VALIDATION = "validation_error"
    AI = "ai_error"
    API = "api_error"
    RATE_LIMIT = "rate_limit_error"
    NETWORK = "network_error"


class AgentError(BaseModel):
    code: ErrorCode
    message: str
    type: ErrorType
    retryable: bool = False
    details: Optional[dict[str, Any]] = None


class AgentResponse(BaseModel, Generic[T]):
    """Outcome of an agent call.

    Exactly one of ``data`` and ``error`` is populated, and ``success``
    says which. Callers check ``success`` before touching ``data``.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[AgentError] = None
    usage: Optional[TokenUsage] = None
    model: Optional[str] = None
    stop_reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_exclusive(self) -> "AgentResponse[T]":
        if self.success:
            if self.data is None or self.error is not None:
                raise ValueError("successful response must carry data and no error")
        elif self.error is None or self.data is not None:
            raise ValueError("failed response must carry an error and no data")
        return self

    @classmethod
    def ok(
        cls,
        data: T,
        usage: Optional[TokenUsage] = None,
        model: Optional[str] = None,
        stop_reason: Optional[str] = None,
    ) -> "AgentResponse[T]":
        return cls(success=True, data=data, usage=usage, model=model, stop_reason=stop_reason)

    @classmethod
    def fail(cls, error: AgentError) -> "AgentResponse[T]":
        return cls(success=False, error=error)
