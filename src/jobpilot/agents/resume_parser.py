"""Structured extraction of resume text."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from pydantic import BaseModel

from ..core.config import AgentSettings
from ..core.errors import invalid_input
from ..core.invoke import build_request, run_agent
from ..core.parsing import json_validator
from ..core.retry import Sleep
from ..models.agent import AgentError, AgentResponse
from ..models.resume import ParsedResumeData
from ..providers.base import ModelClient
from .common import JSON_ONLY, ensure_object, is_blank, list_or_empty

logger = logging.getLogger(__name__)

AGENT_KEY = "resume_parser"

MAX_RESUME_CHARS = 20000

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SYSTEM_PROMPT = f"""You are an expert resume parser. Extract structured information from resume text accurately and completely.

Rules:
1. Personal info: name, email, phone, location, LinkedIn, GitHub, portfolio and website URLs.
2. Summary: the professional summary, objective or about section.
3. Experiences, most recent first: company, position, location, start_date and end_date as "YYYY-MM" (or "YYYY"),
   is_current, description, quantified achievements and technologies.
4. Educations: institution, degree (expand abbreviations such as "BS"), field_of_study, dates, gpa, honors, coursework.
5. Skills: every skill mentioned, with a category (Programming Languages, Frameworks, Tools, Soft Skills, ...)
   and a level (Beginner, Intermediate, Advanced, Expert) when the context shows it. Never invent skills.
6. Certifications: name, issuing_organization, issue_date, expiry_date, credential_id.
Use null for anything not present and empty lists for missing sections.

{JSON_ONLY}

{{
  "personal_info": {{"name": "...", "email": "...", "phone": "...", "location": "...",
                    "linkedin_url": null, "github_url": null, "portfolio_url": null, "website_url": null}},
  "summary": "...",
  "experiences": [{{"company": "...", "position": "...", "location": "...", "start_date": "2021-03",
                   "end_date": null, "is_current": true, "description": "...",
                   "achievements": ["..."], "technologies": ["..."]}}],
  "educations": [{{"institution": "...", "degree": "...", "field_of_study": "...", "start_date": "...",
                  "end_date": "...", "gpa": null, "honors": [], "coursework": []}}],
  "skills": [{{"name": "...", "category": "...", "level": "..."}}],
  "certifications": [{{"name": "...", "issuing_organization": "...", "issue_date": null}}]
}}"""


class ResumeParseInput(BaseModel):
    resume_text: str = ""
    file_name: Optional[str] = None


def validate_resume_parse_input(data: ResumeParseInput) -> Optional[AgentError]:
    if is_blank(data.resume_text):
        return invalid_input(["Resume text is empty or invalid"])
    return None


def truncate_resume_text(text: str, file_name: Optional[str] = None) -> str:
    if len(text) <= MAX_RESUME_CHARS:
        return text
    logger.warning(
        "Resume text truncated from %d to %d chars (file=%s)", len(text), MAX_RESUME_CHARS, file_name
    )
    return text[:MAX_RESUME_CHARS]


def build_user_prompt(text: str) -> str:
    return f"Parse the following resume into structured JSON.\n\n# RESUME TEXT\n{text}"


def _fill_strings(items: Any, *keys: str) -> None:
    if not isinstance(items, list):
        return
    for item in items:
        if isinstance(item, dict):
            for key in keys:
                if item.get(key) is None:
                    item[key] = ""


def normalize_resume(data: Any) -> dict:
    """Default missing collections and tolerate bare skill names."""
    data = ensure_object(data)
    list_or_empty(data, "experiences", "educations", "skills", "certifications")
    if data.get("personal_info") is None:
        data["personal_info"] = {}

    if isinstance(data["skills"], list):
        data["skills"] = [{"name": s} if isinstance(s, str) else s for s in data["skills"]]
    _fill_strings(data["experiences"], "company", "position", "start_date")
    _fill_strings(data["educations"], "institution", "degree", "field_of_study")
    _fill_strings(data["certifications"], "name")
    return data


def resume_warnings(data: ParsedResumeData) -> list[str]:
    """Soft quality problems. These are reported, never treated as failures."""
    warnings = []
    info = data.personal_info

    if not info.name:
        warnings.append("Name not found in resume")
    if not info.email and not info.phone:
        warnings.append("No contact information (email or phone) found")
    if not data.experiences:
        warnings.append("No work experience found")
    if not data.educations:
        warnings.append("No education information found")
    if not data.skills:
        warnings.append("No skills found")
    if info.email and not _EMAIL.match(info.email):
        warnings.append(f"Invalid email format: {info.email}")

    for i, exp in enumerate(data.experiences, 1):
        if not exp.company:
            warnings.append(f"Experience {i}: Missing company name")
        if not exp.position:
            warnings.append(f"Experience {i}: Missing position/title")
        if not exp.start_date:
            warnings.append(f"Experience {i}: Missing start date")

    for i, edu in enumerate(data.educations, 1):
        if not edu.institution:
            warnings.append(f"Education {i}: Missing institution name")
        if not edu.degree:
            warnings.append(f"Education {i}: Missing degree")
        if not edu.field_of_study:
            warnings.append(f"Education {i}: Missing field of study")
        if edu.gpa is not None and not 0 <= edu.gpa <= 5:
            warnings.append(f"Education {i}: GPA {edu.gpa} is out of valid range (0-5)")

    return warnings


async def parse_resume(
    client: ModelClient,
    settings: AgentSettings,
    data: ResumeParseInput,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[ParsedResumeData]:
    error = validate_resume_parse_input(data)
    if error:
        logger.warning("Resume parsing rejected: %s", error.message)
        return AgentResponse.fail(error)

    text = truncate_resume_text(data.resume_text, data.file_name)
    logger.info("Starting resume parsing (%d chars, file=%s)", len(text), data.file_name)

    request = build_request(settings, build_user_prompt(text), system_prompt=SYSTEM_PROMPT)
    response = await run_agent(
        client,
        settings,
        request,
        json_validator(ParsedResumeData, normalize=normalize_resume),
        agent=AGENT_KEY,
        sleep=sleep,
    )

    if response.success:
        parsed = response.data
        warnings = resume_warnings(parsed)
        if warnings:
            logger.warning("Parsed resume has %d warnings: %s", len(warnings), "; ".join(warnings))
        logger.info(
            "Resume parsed: %d experiences, %d educations, %d skills",
            len(parsed.experiences), len(parsed.educations), len(parsed.skills),
        )
    return response
