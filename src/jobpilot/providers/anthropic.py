"""Anthropic Messages API client, token estimates and cost table."""

from __future__ import annotations

import logging
import math
import os
import time
from typing import Optional

import httpx

from ..core.exceptions import MissingAPIKeyError
from ..models.provider import ModelRequest, RawResponse, TokenUsage
from .base import BaseClient

logger = logging.getLogger(__name__)

CLAUDE_MODELS = {
    "SONNET_4_5": "claude-sonnet-4-5-20250929",
    "OPUS_4": "claude-opus-4-20250514",
    "HAIKU_3_5": "claude-3-5-haiku-20241022",
}

# USD per 1M tokens
MODEL_COSTS: dict[str, dict[str, float]] = {
    CLAUDE_MODELS["SONNET_4_5"]: {"input": 3.0, "output": 15.0},
    CLAUDE_MODELS["OPUS_4"]: {"input": 15.0, "output": 75.0},
    CLAUDE_MODELS["HAIKU_3_5"]: {"input": 1.0, "output": 5.0},
}

MODEL_TOKEN_LIMITS: dict[str, int] = {model: 200_000 for model in MODEL_COSTS}
DEFAULT_TOKEN_LIMIT = 200_000


def estimate_tokens(text: str) -> int:
    """Rough token count: about 4 characters per token."""
    return math.ceil(len(text) / 4)


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    costs = MODEL_COSTS.get(model)
    if not costs:
        logger.warning("Unknown model for cost calculation: %s", model)
        return 0.0
    return (input_tokens / 1_000_000) * costs["input"] + (output_tokens / 1_000_000) * costs["output"]


def get_token_limit(model: str) -> int:
    return MODEL_TOKEN_LIMITS.get(model, DEFAULT_TOKEN_LIMIT)


def validate_token_count(model: str, estimated_tokens: int) -> dict:
    limit = get_token_limit(model)
    valid = estimated_tokens <= limit
    if not valid:
        logger.warning(
            "Token limit exceeded: model=%s limit=%d estimated=%d",
            model, limit, estimated_tokens,
        )
    return {"valid": valid, "limit": limit, "estimated": estimated_tokens}


class AnthropicClient(BaseClient):
    name = "anthropic"
    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"

    def __init__(self, ai_config: dict, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(ai_config)
        self.transport = transport
        if not 1 <= self.max_tokens <= 8192:
            logger.warning("Max tokens %d is outside recommended range (1-8192)", self.max_tokens)

    def _get_api_key(self) -> str:
        env_var = self.config.get("api_key_env", "ANTHROPIC_API_KEY")
        api_key = self.config.get("api_key") or os.environ.get(env_var)
        if not api_key:
            raise MissingAPIKeyError(env_var)
        return api_key

    def build_body(self, request: ModelRequest) -> dict:
        body: dict = {
            "model": request.model or self.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.user_message}],
        }
        if request.system_prompt:
            body["system"] = request.system_prompt
        if request.stop_sequences:
            body["stop_sequences"] = list(request.stop_sequences)
        if request.top_p is not None:
            body["top_p"] = request.top_p
        if request.top_k is not None:
            body["top_k"] = request.top_k
        return body

    async def complete(self, request: ModelRequest) -> RawResponse:
        api_key = self._get_api_key()
        body = self.build_body(request)
        headers = {
            "x-api-key": api_key,
            "anthropic-version": self.API_VERSION,
            "content-type": "application/json",
        }

        estimated = estimate_tokens((request.system_prompt or "") + request.user_message)
        validate_token_count(body["model"], estimated)
        logger.info("Model request: model=%s estimated_tokens=%d", body["model"], estimated)
        start = time.monotonic()

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                self.config.get("api_url") or self.API_URL, json=body, headers=headers
            )
            response.raise_for_status()
            data = response.json()

        text = "\n".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )
        usage_data = data.get("usage", {})
        usage = TokenUsage(
            input_tokens=usage_data.get("input_tokens", 0),
            output_tokens=usage_data.get("output_tokens", 0),
        )
        model = data.get("model") or body["model"]
        cost = calculate_cost(model, usage.input_tokens, usage.output_tokens)

        logger.info(
            "Model response: input_tokens=%d output_tokens=%d cost=$%.4f duration=%dms stop_reason=%s",
            usage.input_tokens,
            usage.output_tokens,
            cost,
            (time.monotonic() - start) * 1000,
            data.get("stop_reason"),
        )

        return RawResponse(
            text=text,
            usage=usage,
            model=model,
            stop_reason=data.get("stop_reason"),
        )
