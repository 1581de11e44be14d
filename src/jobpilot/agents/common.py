"""Helpers shared by the agents: prompt formatting and input checks."""

from __future__ import annotations

import re
from typing import Any, Optional

from ..core.errors import shape_error
from ..core.parsing import ResponseError
from ..models.resume import ParsedResumeData

MIN_JOB_DESCRIPTION_CHARS = 50

JSON_ONLY = (
    "Respond with a single JSON object and nothing else. "
    "Use snake_case keys exactly as shown."
)

_REQUIREMENTS = re.compile(
    r"(?:requirements?|qualifications?|must[- ]haves?)[:\s]*([\s\S]*?)"
    r"(?=\n\n|preferred|nice[- ]to[- ]have|$)",
    re.IGNORECASE,
)
_PREFERRED = re.compile(
    r"(?:preferred|nice[- ]to[- ]have|bonus)[:\s]*([\s\S]*?)(?=\n\n|$)",
    re.IGNORECASE,
)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def check_job_fields(
    job_title: Optional[str],
    company_name: Optional[str],
    job_description: Optional[str],
) -> list[str]:
    """Input errors for the job fields most agents share."""
    errors = []
    if is_blank(job_description) or len(job_description.strip()) < MIN_JOB_DESCRIPTION_CHARS:
        errors.append(f"Job description must be at least {MIN_JOB_DESCRIPTION_CHARS} characters")
    if is_blank(job_title):
        errors.append("Job title is required")
    if is_blank(company_name):
        errors.append("Company name is required")
    return errors


def extract_requirements(description: str) -> tuple[str, str]:
    """Pull (requirements, preferred qualifications) out of a free-text posting.

    Falls back to the whole description and "Not specified".
    """
    req = _REQUIREMENTS.search(description)
    pref = _PREFERRED.search(description)
    requirements = req.group(1).strip() if req and req.group(1).strip() else description
    preferred = pref.group(1).strip() if pref and pref.group(1).strip() else "Not specified"
    return requirements, preferred


def format_job(
    job_title: str,
    company_name: str,
    job_description: str,
    location: Optional[str] = None,
    salary_range: Optional[str] = None,
    job_type: Optional[str] = None,
    work_mode: Optional[str] = None,
) -> str:
    lines = [f"Job Title: {job_title}", f"Company: {company_name}"]
    if location:
        lines.append(f"Location: {location}")
    if job_type:
        lines.append(f"Job Type: {job_type}")
    if work_mode:
        lines.append(f"Work Mode: {work_mode}")
    if salary_range:
        lines.append(f"Salary Range: {salary_range}")
    lines.append("")
    lines.append("Job Description:")
    lines.append(job_description)
    return "\n".join(lines)


def format_resume(resume: ParsedResumeData) -> str:
    """Render structured resume data as readable prompt text."""
    sections: list[str] = []

    info = resume.personal_info
    contact = [
        ("Name", info.name),
        ("Email", info.email),
        ("Phone", info.phone),
        ("Location", info.location),
        ("LinkedIn", info.linkedin_url),
        ("GitHub", info.github_url),
    ]
    present = [f"{label}: {value}" for label, value in contact if value]
    if present:
        sections.append("# PERSONAL INFORMATION")
        sections.extend(present)
        sections.append("")

    if resume.summary:
        sections.append("# PROFESSIONAL SUMMARY")
        sections.append(resume.summary)
        sections.append("")

    if resume.experiences:
        sections.append("# WORK EXPERIENCE")
        for exp in resume.experiences:
            end = "Present" if exp.is_current else (exp.end_date or "")
            sections.append(f"## {exp.position} at {exp.company}")
            sections.append(f"{exp.start_date} - {end}".strip(" -"))
            if exp.location:
                sections.append(f"Location: {exp.location}")
            if exp.description:
                sections.append(exp.description)
            for achievement in exp.achievements:
                sections.append(f"- {achievement}")
            if exp.technologies:
                sections.append(f"Technologies: {', '.join(exp.technologies)}")
            sections.append("")

    if resume.educations:
        sections.append("# EDUCATION")
        for edu in resume.educations:
            degree = f"{edu.degree} in {edu.field_of_study}" if edu.field_of_study else edu.degree
            sections.append(f"## {degree}, {edu.institution}")
            if edu.gpa is not None:
                sections.append(f"GPA: {edu.gpa}")
            if edu.honors:
                sections.append(f"Honors: {', '.join(edu.honors)}")
            sections.append("")

    if resume.skills:
        sections.append("# SKILLS")
        by_category: dict[str, list[str]] = {}
        for skill in resume.skills:
            by_category.setdefault(skill.category or "Other", []).append(skill.name)
        for category, names in by_category.items():
            sections.append(f"{category}: {', '.join(names)}")
        sections.append("")

    if resume.certifications:
        sections.append("# CERTIFICATIONS")
        for cert in resume.certifications:
            issuer = f" ({cert.issuing_organization})" if cert.issuing_organization else ""
            sections.append(f"- {cert.name}{issuer}")

    return "\n".join(sections).strip()


def ensure_object(data: Any) -> dict:
    """Reject replies whose top-level JSON value is not an object."""
    if not isinstance(data, dict):
        raise ResponseError(shape_error("response: expected a JSON object"))
    return data


def list_or_empty(data: dict, *keys: str) -> None:
    """Replace missing or null list fields with empty lists, in place."""
    for key in keys:
        if data.get(key) is None:
            data[key] = []
