"""Model client abstraction.

Clients are built explicitly and handed to agents; nothing here is a
module-level singleton.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..core.exceptions import ConfigError
from ..models.provider import ModelRequest, RawResponse


@runtime_checkable
class ModelClient(Protocol):
    """Protocol that all model clients must implement.

    ``complete`` raises on transport or vendor failure; callers classify the
    exception into an ``AgentError``.
    """

    name: str

    async def complete(self, request: ModelRequest) -> RawResponse: ...


class BaseClient:
    """Base class with shared config handling."""

    name: str = "base"

    def __init__(self, ai_config: dict):
        self.config = ai_config
        self.model = ai_config.get("model", "claude-sonnet-4-5-20250929")
        self.max_tokens = ai_config.get("max_tokens", 4096)
        self.timeout = ai_config.get("timeout_seconds", 300)

    async def complete(self, request: ModelRequest) -> RawResponse:
        raise NotImplementedError


def get_model_client(config: dict, model_override: str | None = None) -> BaseClient:
    """Factory function to create the configured model client."""
    ai_config = dict(config.get("ai", {}))
    provider_name = ai_config.get("provider", "anthropic")

    if model_override:
        ai_config["model"] = model_override

    if provider_name == "anthropic":
        from .anthropic import AnthropicClient
        return AnthropicClient(ai_config)
    raise ConfigError(f"Unknown AI provider: {provider_name}")
