"""Resume tailoring for a specific job posting.

The tailored resume never drops a section: anything the model leaves out is
copied from the original. ``estimated_impact`` is computed locally from the
scores and the amount of change, not taken from the model.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel

from ..core.config import AgentSettings
from ..core.errors import invalid_input
from ..core.invoke import build_request, run_agent
from ..core.parsing import parse_json_response, require, validate_shape
from ..core.retry import Sleep
from ..models.agent import AgentError, AgentResponse
from ..models.analysis import Impact, ResumeDiff, TailorResumeResult
from ..models.resume import ParsedResumeData
from ..providers.base import ModelClient
from .common import (
    JSON_ONLY,
    check_job_fields,
    ensure_object,
    extract_requirements,
    format_resume,
    is_blank,
    list_or_empty,
)

logger = logging.getLogger(__name__)

AGENT_KEY = "resume_tailor"

DEFAULT_MATCH_SCORE = 50

RESUME_SECTIONS = ("personal_info", "experiences", "educations", "skills", "certifications")

SYSTEM_PROMPT = f"""You are an expert resume writer who tailors resumes to specific job postings while keeping them 100% truthful.

Rules:
- Never fabricate experiences, skills, employers, dates or achievements. Only reframe and reorder what exists.
- Work the posting's keywords into summaries and bullet points where they honestly apply.
- Quantify achievements where the original gives enough information.
- Put the most relevant experience and skills first.
- Keep formatting ATS friendly.
- Include every section of the original resume.

Document each modification in "changes" with the section, the field, the original text, the new text and the reason.
match_score and ats_score are integers from 0 to 100 describing the tailored resume against the posting.

{JSON_ONLY}

{{
  "tailored_resume": {{
    "personal_info": {{"name": "...", "email": "...", "phone": "...", "location": "...", "linkedin_url": null, "github_url": null}},
    "summary": "...",
    "experiences": [
      {{"company": "...", "position": "...", "location": "...", "start_date": "...", "end_date": null,
        "is_current": true, "achievements": ["..."], "technologies": ["..."]}}
    ],
    "educations": [{{"institution": "...", "degree": "...", "field_of_study": "...", "end_date": "...", "gpa": null}}],
    "skills": [{{"name": "...", "category": "..."}}],
    "certifications": [{{"name": "...", "issuing_organization": "..."}}]
  }},
  "match_score": 82,
  "ats_score": 88,
  "summary": "One paragraph describing the tailoring",
  "changes": [{{"section": "experience", "field": "achievements", "original": "...", "modified": "...", "reason": "..."}}],
  "keyword_alignment": {{
    "required_skills": {{"present": ["..."], "missing": ["..."]}},
    "added_keywords": ["..."]
  }},
  "recommendations": ["..."]
}}"""


class TailorResumeInput(BaseModel):
    resume: Optional[ParsedResumeData] = None
    job_description: str = ""
    job_title: str = ""
    company_name: str = ""
    job_requirements: Optional[str] = None
    preferred_qualifications: Optional[str] = None


def validate_tailor_input(data: TailorResumeInput) -> Optional[AgentError]:
    errors = []
    if data.resume is None:
        errors.append("Resume data is required")
    else:
        if not data.resume.experiences:
            errors.append("Resume must have at least one work experience")
        if not data.resume.skills:
            errors.append("Resume must have at least one skill")
    errors += check_job_fields(data.job_title, data.company_name, data.job_description)
    return invalid_input(errors) if errors else None


def resolve_requirements(data: TailorResumeInput) -> tuple[str, str]:
    """Use the supplied requirements, or pull them out of the description."""
    if not is_blank(data.job_requirements):
        preferred = data.preferred_qualifications
        return data.job_requirements, preferred if not is_blank(preferred) else "Not specified"
    return extract_requirements(data.job_description)


def build_user_prompt(data: TailorResumeInput) -> str:
    requirements, preferred = resolve_requirements(data)
    return (
        "Tailor the following resume for the target job.\n\n"
        f"# CURRENT RESUME\n\n{format_resume(data.resume)}\n\n"
        "# TARGET JOB\n\n"
        f"Job Title: {data.job_title}\n"
        f"Company: {data.company_name}\n\n"
        f"Description:\n{data.job_description}\n\n"
        f"Requirements:\n{requirements}\n\n"
        f"Preferred Qualifications:\n{preferred}\n\n"
        "Return the complete tailored resume with every change documented."
    )


def _valid_score(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 100


def normalize_reply(data: Any, original: ParsedResumeData) -> dict:
    data = ensure_object(data)

    tailored = data.get("tailored_resume")
    if isinstance(tailored, dict):
        backup = original.model_dump()
        for key in RESUME_SECTIONS:
            if tailored.get(key) is None:
                tailored[key] = backup[key]

    if not _valid_score(data.get("match_score")):
        logger.warning("Invalid match score %r, defaulting to %d", data.get("match_score"), DEFAULT_MATCH_SCORE)
        data["match_score"] = DEFAULT_MATCH_SCORE

    alignment = data.get("keyword_alignment")
    if isinstance(alignment, dict) and "required_skills" in alignment:
        required = alignment.get("required_skills") or {}
        require(isinstance(required, dict), "keyword_alignment.required_skills: Input should be a valid dictionary")
        data["keyword_alignment"] = {
            "matched": required.get("present") or [],
            "missing": required.get("missing") or [],
            "suggestions": alignment.get("added_keywords") or [],
        }
    elif alignment is None:
        data.pop("keyword_alignment", None)

    list_or_empty(data, "changes", "recommendations")
    data.pop("estimated_impact", None)
    return data


def estimate_impact(result: TailorResumeResult) -> Impact:
    matched = len(result.keyword_alignment.matched)
    changes = len(result.changes)
    ats = result.ats_score

    good_ats = ats is not None and ats >= 85
    if result.match_score >= 80 and (changes >= 5 or good_ats) and matched >= 10:
        return "high"

    low_ats = ats is not None and ats < 70
    if result.match_score < 60 or (changes < 3 and low_ats):
        return "low"

    return "medium"


def make_validator(original: ParsedResumeData):
    def validator(text: str) -> TailorResumeResult:
        data = normalize_reply(parse_json_response(text), original)
        result = validate_shape(data, TailorResumeResult)
        result.estimated_impact = estimate_impact(result)
        return result

    return validator


async def tailor_resume(
    client: ModelClient,
    settings: AgentSettings,
    data: TailorResumeInput,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[TailorResumeResult]:
    error = validate_tailor_input(data)
    if error:
        logger.warning("Resume tailoring rejected: %s", error.message)
        return AgentResponse.fail(error)

    logger.info(
        "Starting resume tailoring for %s at %s (%d experiences, %d skills)",
        data.job_title, data.company_name, len(data.resume.experiences), len(data.resume.skills),
    )
    request = build_request(settings, build_user_prompt(data), system_prompt=SYSTEM_PROMPT)
    response = await run_agent(
        client,
        settings,
        request,
        make_validator(data.resume),
        agent=AGENT_KEY,
        sleep=sleep,
    )

    if response.success:
        result = response.data
        logger.info(
            "Resume tailoring complete: match=%s ats=%s changes=%d impact=%s",
            result.match_score, result.ats_score, len(result.changes), result.estimated_impact,
        )
    return response


def summarize_tailoring(result: TailorResumeResult) -> str:
    lines = [f"Match Score: {result.match_score:g}%"]
    if result.ats_score is not None:
        lines.append(f"ATS Score: {result.ats_score:g}%")

    lines.append("")
    lines.append(f"Changes Made: {len(result.changes)}")
    by_section: dict[str, int] = {}
    for change in result.changes:
        by_section[change.section] = by_section.get(change.section, 0) + 1
    for section, count in by_section.items():
        lines.append(f"  - {section}: {count} changes")

    alignment = result.keyword_alignment
    lines += [
        "",
        "Keyword Alignment:",
        f"  - Matched: {len(alignment.matched)} keywords",
        f"  - Missing: {len(alignment.missing)} keywords",
        f"  - Suggestions: {len(alignment.suggestions)} additions",
        "",
        f"Estimated Impact: {result.estimated_impact.upper()}",
    ]

    if result.recommendations:
        lines.append("")
        lines.append("Top Recommendations:")
        for i, rec in enumerate(result.recommendations[:3], 1):
            lines.append(f"  {i}. {rec}")

    return "\n".join(lines)


def diff_resumes(original: ParsedResumeData, tailored: ParsedResumeData) -> list[ResumeDiff]:
    """Summary, per-experience achievement and skill-list differences."""
    diffs: list[ResumeDiff] = []

    if original.summary != tailored.summary:
        diffs.append(ResumeDiff(section="summary", field="text", before=original.summary, after=tailored.summary))

    for orig, new in zip(original.experiences, tailored.experiences):
        if orig.achievements != new.achievements:
            diffs.append(
                ResumeDiff(
                    section="experience",
                    field=f"{orig.position} at {orig.company} - achievements",
                    before=orig.achievements,
                    after=new.achievements,
                )
            )

    before_skills = sorted(s.name for s in original.skills)
    after_skills = sorted(s.name for s in tailored.skills)
    if before_skills != after_skills:
        diffs.append(ResumeDiff(section="skills", field="list", before=before_skills, after=after_skills))

    return diffs
