"""Cover letter generation."""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional

from pydantic import BaseModel

from ..core.config import AgentSettings
from ..core.errors import invalid_input
from ..core.invoke import build_request, run_agent
from ..core.parsing import json_validator, require
from ..core.retry import Sleep
from ..models.agent import AgentError, AgentResponse
from ..models.analysis import TONES, CoverLetterResult
from ..models.resume import ParsedResumeData
from ..providers.base import ModelClient
from .common import JSON_ONLY, check_job_fields, ensure_object, format_resume, list_or_empty

logger = logging.getLogger(__name__)

AGENT_KEY = "cover_letter"

WORDS_PER_MINUTE = 200
REQUIREMENTS_EXCERPT_CHARS = 500

_REQUIREMENTS = re.compile(
    r"(?:requirements?|qualifications?|must[- ]haves?)[:\s]*([\s\S]*?)(?=\n\n|responsibilities|about|$)",
    re.IGNORECASE,
)

TONE_GUIDE = {
    "professional": "Balanced and business appropriate. Confident but not arrogant.",
    "enthusiastic": "Energetic and passionate. Show real excitement about the company and role.",
    "formal": "Traditional business correspondence. Reserved, precise and conservative.",
}

SYSTEM_PROMPT = f"""You are an expert cover letter writer. Write compelling, personalized cover letters based only on the candidate's real experience.

Structure:
- Opening (2-3 sentences): the position, a strong hook and genuine interest in the company.
- Body (one or two paragraphs of 3-4 sentences): the most relevant experience tied to 2-3 key requirements, with metrics.
- Closing (2-3 sentences): fit, a clear request for an interview and thanks.

Never fabricate experience, achievements or skills. Use the posting's keywords naturally. Aim for 250-400 words.
Use \\n\\n between paragraphs inside the cover_letter string.

{JSON_ONLY}

{{
  "cover_letter": "Dear Hiring Manager,\\n\\n...",
  "subject": "Application for Senior Engineer - Jane Doe",
  "key_points": ["..."],
  "matched_requirements": ["..."],
  "tone": "professional | enthusiastic | formal",
  "word_count": 320,
  "estimated_read_time": "2 minutes",
  "suggestions": ["..."]
}}"""


class CoverLetterInput(BaseModel):
    resume: Optional[ParsedResumeData] = None
    job_description: str = ""
    job_title: str = ""
    company_name: str = ""
    tone: str = "professional"
    additional_notes: Optional[str] = None


def validate_cover_letter_input(data: CoverLetterInput) -> Optional[AgentError]:
    errors = []
    if data.resume is None:
        errors.append("Resume data is required")
    else:
        if not data.resume.experiences:
            errors.append("Resume must have at least one work experience")
        if not data.resume.personal_info.name:
            errors.append("Resume must have personal information with name")
    errors += check_job_fields(data.job_title, data.company_name, data.job_description)
    if data.tone not in TONES:
        errors.append(f"Tone must be one of: {', '.join(TONES)}")
    return invalid_input(errors) if errors else None


def requirements_excerpt(description: str) -> str:
    match = _REQUIREMENTS.search(description)
    if match and match.group(1).strip():
        return match.group(1).strip()
    if len(description) > REQUIREMENTS_EXCERPT_CHARS:
        return description[:REQUIREMENTS_EXCERPT_CHARS] + "..."
    return description


def build_user_prompt(data: CoverLetterInput) -> str:
    notes = data.additional_notes or "None"
    return (
        "Write a cover letter for the following application.\n\n"
        f"# CANDIDATE RESUME\n\n{format_resume(data.resume)}\n\n"
        "# TARGET JOB\n\n"
        f"Job Title: {data.job_title}\n"
        f"Company: {data.company_name}\n\n"
        f"Description:\n{data.job_description}\n\n"
        f"Key Requirements:\n{requirements_excerpt(data.job_description)}\n\n"
        f"# TONE\n{data.tone}: {TONE_GUIDE[data.tone]}\n\n"
        f"# ADDITIONAL NOTES\n{notes}"
    )


def read_time(word_count: int) -> str:
    minutes = max(1, math.ceil(word_count / WORDS_PER_MINUTE))
    return f"{minutes} minute{'s' if minutes > 1 else ''}"


def make_normalizer(tone: str, job_title: str):
    """Fill in what the model may leave out; the letter itself is required."""

    def normalize(data: Any) -> dict:
        data = ensure_object(data)
        list_or_empty(data, "key_points", "matched_requirements", "suggestions")

        letter = data.get("cover_letter")
        count = data.get("word_count")
        if isinstance(letter, str) and (not isinstance(count, int) or isinstance(count, bool) or count < 1):
            data["word_count"] = len(letter.split())

        if data.get("tone") not in TONES:
            data["tone"] = tone
        if not data.get("estimated_read_time") and isinstance(data.get("word_count"), int):
            data["estimated_read_time"] = read_time(data["word_count"])
        if not data.get("subject"):
            data["subject"] = f"Application for {job_title}"
        return data

    return normalize


def _check(result: CoverLetterResult) -> None:
    require(bool(result.cover_letter.strip()), "cover_letter: response missing cover letter content")


async def generate_cover_letter(
    client: ModelClient,
    settings: AgentSettings,
    data: CoverLetterInput,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[CoverLetterResult]:
    error = validate_cover_letter_input(data)
    if error:
        logger.warning("Cover letter rejected: %s", error.message)
        return AgentResponse.fail(error)

    logger.info("Generating %s cover letter for %s at %s", data.tone, data.job_title, data.company_name)
    request = build_request(settings, build_user_prompt(data), system_prompt=SYSTEM_PROMPT)
    validator = json_validator(
        CoverLetterResult,
        normalize=make_normalizer(data.tone, data.job_title),
        check=_check,
    )
    response = await run_agent(client, settings, request, validator, agent=AGENT_KEY, sleep=sleep)

    if response.success:
        logger.info(
            "Cover letter complete: %d words, %d key points",
            response.data.word_count, len(response.data.key_points),
        )
    return response


def summarize_cover_letter(result: CoverLetterResult) -> str:
    lines = [
        "Cover Letter Generated",
        f"Word Count: {result.word_count}",
        f"Tone: {result.tone}",
        f"Estimated Read Time: {result.estimated_read_time}",
    ]
    if result.key_points:
        lines.append("")
        lines.append("Key Qualifications Highlighted:")
        lines += [f"  {i}. {point}" for i, point in enumerate(result.key_points, 1)]
    if result.matched_requirements:
        lines.append("")
        lines.append(f"Job Requirements Addressed: {len(result.matched_requirements)}")
    if result.suggestions:
        lines.append("")
        lines.append("Suggestions for Enhancement:")
        lines += [f"  {i}. {s}" for i, s in enumerate(result.suggestions[:3], 1)]
    return "\n".join(lines)
