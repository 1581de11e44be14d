"""3-layer configuration system for jobpilot.

Loads and merges configuration from:
1. Default settings (built-in)
2. Workspace config (.jobpilot/config.yaml)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

WORKSPACE_DIR = ".jobpilot"
MAX_TOKENS_LIMIT = 8192

DEFAULT_CONFIG: dict = {
    "ai": {
        "provider": "anthropic",
        "api_url": "https://api.anthropic.com/v1/messages",
        "api_key_env": "ANTHROPIC_API_KEY",
        "model": "claude-sonnet-4-5-20250929",
        "temperature": 1.0,
        "max_tokens": 4096,
        "top_p": None,
        "top_k": None,
        "timeout_seconds": 300,
        "retry_attempts": 3,
        "retry_delay_seconds": 1,
    },
    "agents": {
        "job_analyzer": {"temperature": 0.6, "max_tokens": 6000, "max_retries": 2},
        "resume_analyzer": {"temperature": 0.5, "max_tokens": 4096, "max_retries": 2},
        "resume_tailor": {
            "temperature": 0.5,
            "max_tokens": 8000,
            "max_retries": 3,
            "retry_delay_seconds": 2,
        },
        "cover_letter": {"temperature": 0.7, "max_tokens": 2048, "max_retries": 2},
        "job_parser": {"temperature": 0.3, "max_tokens": 4096, "max_retries": 1},
        "resume_parser": {"temperature": 0.3, "max_tokens": 4096, "max_retries": 2},
        "mock_interview": {"temperature": 0.7, "max_tokens": 4096, "max_retries": 2},
    },
    "fetch": {
        "timeout_seconds": 15,
        "max_chars": 15000,
    },
}


class AgentSettings(BaseModel):
    """Resolved per-agent call settings."""

    model_config = ConfigDict(frozen=True)

    model: str
    temperature: float
    max_tokens: int
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_retries: int = 3
    retry_delay_seconds: float = 1.0


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_workspace_config(workspace: Path) -> dict:
    """Load workspace configuration from .jobpilot/config.yaml."""
    config_path = workspace / WORKSPACE_DIR / "config.yaml"
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")
    return data


def get_effective_config(
    workspace: Path,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for a workspace."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    workspace_config = load_workspace_config(workspace)
    if workspace_config:
        config = deep_merge(config, workspace_config)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    config["_workspace"] = str(workspace)
    return config


def get_agent_settings(config: dict, agent_key: str) -> AgentSettings:
    """Overlay an agent's overrides on the shared ``ai`` settings."""
    ai = config.get("ai", {})
    overrides = (config.get("agents") or {}).get(agent_key) or {}

    def pick(key: str, ai_key: Optional[str] = None):
        if key in overrides and overrides[key] is not None:
            return overrides[key]
        return ai.get(ai_key or key)

    temperature = pick("temperature")
    if temperature is None or not 0 <= temperature <= 1:
        raise ConfigError(f"Temperature must be between 0 and 1 (agent: {agent_key})")

    max_tokens = pick("max_tokens") or DEFAULT_CONFIG["ai"]["max_tokens"]
    if not 1 <= max_tokens <= MAX_TOKENS_LIMIT:
        logger.warning("max_tokens %s for %s is outside 1-%d", max_tokens, agent_key, MAX_TOKENS_LIMIT)

    return AgentSettings(
        model=pick("model") or DEFAULT_CONFIG["ai"]["model"],
        temperature=temperature,
        max_tokens=max_tokens,
        top_p=pick("top_p"),
        top_k=pick("top_k"),
        max_retries=pick("max_retries", "retry_attempts") or 1,
        retry_delay_seconds=pick("retry_delay_seconds") or 0,
    )
