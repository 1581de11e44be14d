"""Model request/response data models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field


class ModelRequest(BaseModel):
    """A single call to the model. Built per call and discarded."""

    model_config = ConfigDict(frozen=True)

    system_prompt: Optional[str] = None
    user_message: str
    model: Optional[str] = None
    temperature: float = 1.0
    max_tokens: int = 4096
    stop_sequences: Optional[tuple[str, ...]] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class RawResponse(BaseModel):
    text: str
    usage: TokenUsage = TokenUsage()
    model: str = ""
    stop_reason: Optional[str] = None
