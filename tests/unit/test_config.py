"""Tests for core/config.py."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from jobpilot.core.config import (
    DEFAULT_CONFIG,
    deep_merge,
    get_agent_settings,
    get_effective_config,
    load_workspace_config,
)
from jobpilot.core.exceptions import ConfigError


def write_config(root: Path, content: str) -> None:
    config_dir = root / ".jobpilot"
    config_dir.mkdir(exist_ok=True)
    (config_dir / "config.yaml").write_text(content, encoding="utf-8")


class TestDeepMerge:
    def test_simple_merge(self):
        assert deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"ai": {"model": "a", "timeout_seconds": 30}}
        result = deep_merge(base, {"ai": {"model": "b"}})
        assert result["ai"] == {"model": "b", "timeout_seconds": 30}

    def test_arrays_replaced(self):
        assert deep_merge({"tips": ["a", "b"]}, {"tips": ["c"]}) == {"tips": ["c"]}

    def test_base_not_mutated(self):
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base["a"]["b"] == 1


class TestLoadWorkspaceConfig:
    def test_missing_file(self, tmp_path: Path):
        assert load_workspace_config(tmp_path) == {}

    def test_loads_yaml(self, tmp_path: Path):
        write_config(tmp_path, "ai:\n  model: claude-opus-4-20250514\n")
        assert load_workspace_config(tmp_path) == {"ai": {"model": "claude-opus-4-20250514"}}

    def test_bom_tolerated(self, tmp_path: Path):
        config_dir = tmp_path / ".jobpilot"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_bytes("\ufeffai:\n  temperature: 0.2\n".encode("utf-8"))
        assert load_workspace_config(tmp_path)["ai"]["temperature"] == 0.2

    def test_invalid_yaml(self, tmp_path: Path):
        write_config(tmp_path, "ai: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_workspace_config(tmp_path)

    def test_non_mapping(self, tmp_path: Path):
        write_config(tmp_path, "- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_workspace_config(tmp_path)

    def test_empty_file(self, tmp_path: Path):
        write_config(tmp_path, "")
        assert load_workspace_config(tmp_path) == {}


class TestEffectiveConfig:
    def test_defaults(self, tmp_path: Path):
        config = get_effective_config(tmp_path)
        assert config["ai"]["model"] == DEFAULT_CONFIG["ai"]["model"]
        assert config["_workspace"] == str(tmp_path)

    def test_layers(self, tmp_path: Path):
        write_config(tmp_path, "ai:\n  model: from-workspace\n  max_tokens: 2000\n")
        config = get_effective_config(tmp_path, {"ai": {"model": "from-cli"}})
        assert config["ai"]["model"] == "from-cli"
        assert config["ai"]["max_tokens"] == 2000
        assert config["ai"]["api_key_env"] == "ANTHROPIC_API_KEY"

    def test_defaults_not_mutated(self, tmp_path: Path):
        get_effective_config(tmp_path, {"agents": {"job_analyzer": {"temperature": 0.1}}})
        assert DEFAULT_CONFIG["agents"]["job_analyzer"]["temperature"] == 0.6


class TestAgentSettings:
    def test_agent_overrides(self):
        settings = get_agent_settings(DEFAULT_CONFIG, "resume_tailor")
        assert settings.temperature == 0.5
        assert settings.max_tokens == 8000
        assert settings.max_retries == 3
        assert settings.retry_delay_seconds == 2
        assert settings.model == DEFAULT_CONFIG["ai"]["model"]

    @pytest.mark.parametrize(
        "agent,temperature,max_tokens,max_retries",
        [
            ("job_analyzer", 0.6, 6000, 2),
            ("resume_analyzer", 0.5, 4096, 2),
            ("cover_letter", 0.7, 2048, 2),
            ("job_parser", 0.3, 4096, 1),
            ("resume_parser", 0.3, 4096, 2),
            ("mock_interview", 0.7, 4096, 2),
        ],
    )
    def test_default_agent_table(self, agent, temperature, max_tokens, max_retries):
        settings = get_agent_settings(DEFAULT_CONFIG, agent)
        assert (settings.temperature, settings.max_tokens, settings.max_retries) == (
            temperature,
            max_tokens,
            max_retries,
        )
        assert settings.retry_delay_seconds == 1

    def test_unknown_agent_uses_ai_section(self):
        settings = get_agent_settings(DEFAULT_CONFIG, "something_new")
        assert settings.temperature == 1.0
        assert settings.max_retries == 3

    @pytest.mark.parametrize("temperature", [-0.1, 1.5])
    def test_temperature_out_of_range(self, temperature):
        config = deep_merge(DEFAULT_CONFIG, {"agents": {"job_analyzer": {"temperature": temperature}}})
        with pytest.raises(ConfigError, match="Temperature"):
            get_agent_settings(config, "job_analyzer")

    def test_large_max_tokens_only_warns(self, caplog):
        config = deep_merge(DEFAULT_CONFIG, {"agents": {"job_analyzer": {"max_tokens": 20000}}})
        with caplog.at_level(logging.WARNING, logger="jobpilot.core.config"):
            settings = get_agent_settings(config, "job_analyzer")
        assert settings.max_tokens == 20000
        assert "outside 1-8192" in caplog.text

    def test_settings_are_frozen(self):
        settings = get_agent_settings(DEFAULT_CONFIG, "job_analyzer")
        with pytest.raises(ValidationError):
            settings.temperature = 0.9
