"""Exceptions raised outside the agent layer.

Agents never raise these; they report failures as ``AgentError`` values.
The store, services and CLI use them, and the CLI turns them into exit codes.
"""

from __future__ import annotations


class JobPilotError(Exception):
    """Base class for jobpilot errors."""


class ConfigError(JobPilotError):
    pass


class MissingAPIKeyError(ConfigError):
    def __init__(self, env_var: str) -> None:
        super().__init__(f"API key not found in environment variable: {env_var}")
        self.env_var = env_var


class NotFoundError(JobPilotError):
    pass


class BadRequestError(JobPilotError):
    pass


class StoreError(JobPilotError):
    """Workspace data file is unreadable or malformed."""


class DocumentError(JobPilotError):
    """A resume or posting file could not be turned into text."""
