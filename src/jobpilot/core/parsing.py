"""Two-phase reply handling: JSON parse, then shape validation.

A reply that is not JSON raises a retryable ``PARSE_ERROR``: asking again
may well produce valid JSON. A reply that is JSON of the wrong shape raises
a terminal ``VALIDATION_ERROR``. The two are never merged.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Iterable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from ..models.agent import AgentError
from ..utils.sanitize import preview
from .errors import parse_error, shape_error

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)
_FENCED_ANY = re.compile(r"```\w*\s*([\s\S]*?)```")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")
_ARRAY_SPAN = re.compile(r"\[[\s\S]*\]")


class ResponseError(Exception):
    """Raised inside a validator; carries the ``AgentError`` to report."""

    def __init__(self, error: AgentError) -> None:
        super().__init__(error.message)
        self.error = error


def extract_json_block(text: str) -> Optional[str]:
    """Find the JSON payload in a reply that may wrap it in prose or fences."""
    for pattern in (_FENCED_JSON, _FENCED_ANY):
        match = pattern.search(text)
        if match:
            candidate = match.group(1).strip()
            if candidate.startswith(("{", "[")):
                return candidate

    for pattern in (_OBJECT_SPAN, _ARRAY_SPAN):
        match = pattern.search(text)
        if match:
            return match.group(0)

    return None


def parse_json_response(text: str) -> Any:
    """Strictly parse the reply's JSON payload or raise ``PARSE_ERROR``."""
    if not text or not text.strip():
        raise ResponseError(parse_error("Model returned an empty response"))

    try:
        return json.loads(text.strip())
    except json.JSONDecodeError:
        pass

    payload = extract_json_block(text) or text.strip()
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        logger.error(
            "JSON parsing failed: %s (length=%d) start=%r",
            e, len(text), preview(text, 500),
        )
        raise ResponseError(
            parse_error(
                "Failed to parse AI response as valid JSON. "
                "The AI may have returned an invalid format.",
                raw_text=text,
            )
        ) from e


def _format_location(loc: Iterable[Any]) -> str:
    parts = [str(p) for p in loc]
    return ".".join(parts) if parts else "response"


def validate_shape(data: Any, model: type[M]) -> M:
    """Walk ``data`` against ``model``; the first violation is reported."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        message = f"{_format_location(first['loc'])}: {first['msg']}"
        logger.error("Response shape validation failed: %s", message)
        raise ResponseError(shape_error(message)) from e


def require(condition: bool, message: str) -> None:
    """Extra shape rule that a field-level model cannot express."""
    if not condition:
        logger.error("Response shape validation failed: %s", message)
        raise ResponseError(shape_error(message))


def json_validator(
    model: type[M],
    normalize: Optional[Callable[[Any], Any]] = None,
    check: Optional[Callable[[M], None]] = None,
) -> Callable[[str], M]:
    """Build a validator callback: parse, optionally normalize, validate."""

    def validator(text: str) -> M:
        data = parse_json_response(text)
        if normalize is not None:
            data = normalize(data)
        result = validate_shape(data, model)
        if check is not None:
            check(result)
        return result

    return validator
