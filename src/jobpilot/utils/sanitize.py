"""Error message sanitization to prevent credential leakage."""

from __future__ import annotations

import os
import re

_SECRET_PATTERNS = (
    (r"sk-ant-[a-zA-Z0-9_-]+", "[REDACTED_KEY]"),
    (r"sk-[a-zA-Z0-9_-]{20,}", "[REDACTED_KEY]"),
    (r"Bearer\s+\S+", "Bearer [REDACTED]"),
    (r"x-api-key:\s*\S+", "x-api-key: [REDACTED]"),
    (r"Authorization:\s*\S+", "Authorization: [REDACTED]"),
)


def sanitize_error(message: str) -> str:
    """Redact API keys and the user's home path from an error message."""
    if not message:
        return message

    sanitized = message
    for pattern, replacement in _SECRET_PATTERNS:
        sanitized = re.sub(pattern, replacement, sanitized)

    home = os.environ.get("USERPROFILE") or os.environ.get("HOME") or ""
    if home and home != "/":
        sanitized = sanitized.replace(home, "[USER_HOME]")

    return sanitized


def preview(text: str, limit: int = 500) -> str:
    """Head of ``text`` for log lines, marked when cut."""
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} more chars]"
