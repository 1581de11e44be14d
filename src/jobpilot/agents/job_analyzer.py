"""Job posting analysis, optionally matched against a candidate resume."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from ..core.config import AgentSettings
from ..core.errors import invalid_input
from ..core.invoke import build_request, run_agent
from ..core.parsing import json_validator, require
from ..core.retry import Sleep
from ..models.agent import AgentError, AgentResponse
from ..models.analysis import JobAnalysisResult
from ..models.resume import ParsedResumeData
from ..providers.base import ModelClient
from .common import JSON_ONLY, check_job_fields, format_job

logger = logging.getLogger(__name__)

AGENT_KEY = "job_analyzer"

SYSTEM_PROMPT = f"""You are an expert career advisor and job market analyst. Analyze job postings honestly so job seekers can decide whether a role is right for them.

Evaluate the posting on:
1. Role level: one of "entry", "mid", "senior", "lead", "executive", judged from title, years of experience and scope.
2. Key responsibilities: 3-8 core duties.
3. Required skills (hard requirements) and preferred skills (nice to have).
4. Red flags: unrealistic expectations, vague duties, "rockstar" language, below-market pay, uncompensated on-call. Empty list if none.
5. Highlights: growth paths, modern stack, flexible work, transparent process.
6. Salary insights: a realistic estimated range, how any posted range compares with the market ("Salary not disclosed" if absent), and 3-5 factors.
7. Application tips: 4-7 specific, actionable tips.

When a candidate resume is provided, add a match analysis. Scores are integers from 0 to 100:
overall_match (skills 40%, experience 35%, domain 15%, role fit 10%), skills_match and experience_match.
Give 3-5 match_reasons, 2-5 gaps and 3-6 recommendations. Do not inflate scores.
When no resume is provided, omit match_analysis entirely.

{JSON_ONLY}

{{
  "analysis": {{
    "role_level": "entry | mid | senior | lead | executive",
    "key_responsibilities": ["..."],
    "required_skills": ["..."],
    "preferred_skills": ["..."],
    "red_flags": ["..."],
    "highlights": ["..."]
  }},
  "match_analysis": {{
    "overall_match": 85,
    "skills_match": 80,
    "experience_match": 90,
    "match_reasons": ["..."],
    "gaps": ["..."],
    "recommendations": ["..."]
  }},
  "salary_insights": {{
    "estimated_range": "$120,000 - $160,000",
    "market_comparison": "At market average",
    "factors": ["..."]
  }},
  "application_tips": ["..."]
}}"""

NO_RESUME = "No candidate resume provided. Perform job analysis only, without match scoring."


class JobAnalysisInput(BaseModel):
    job_title: str = ""
    company_name: str = ""
    job_description: str = ""
    location: Optional[str] = None
    salary_range: Optional[str] = None
    job_type: Optional[str] = None
    work_mode: Optional[str] = None
    resume: Optional[ParsedResumeData] = None


def validate_job_analysis_input(data: JobAnalysisInput) -> Optional[AgentError]:
    errors = check_job_fields(data.job_title, data.company_name, data.job_description)
    return invalid_input(errors) if errors else None


def build_user_prompt(data: JobAnalysisInput) -> str:
    job = format_job(
        data.job_title,
        data.company_name,
        data.job_description,
        location=data.location,
        salary_range=data.salary_range,
        job_type=data.job_type,
        work_mode=data.work_mode,
    )
    resume = data.resume.model_dump_json(indent=2) if data.resume else NO_RESUME
    return (
        "Analyze this job posting and provide comprehensive insights.\n\n"
        f"# JOB POSTING DATA\n{job}\n\n"
        f"# CANDIDATE RESUME DATA\n{resume}"
    )


def make_validator(expect_match: bool):
    def check(result: JobAnalysisResult) -> None:
        if expect_match:
            require(
                result.match_analysis is not None,
                "match_analysis: required when a resume is supplied",
            )

    return json_validator(JobAnalysisResult, check=check)


async def analyze_job(
    client: ModelClient,
    settings: AgentSettings,
    data: JobAnalysisInput,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[JobAnalysisResult]:
    """Analyze a job posting. Invalid input fails before any model call."""
    error = validate_job_analysis_input(data)
    if error:
        logger.warning("Job analysis rejected: %s", error.message)
        return AgentResponse.fail(error)

    logger.info(
        "Starting job analysis: %s at %s (resume=%s, description=%d chars)",
        data.job_title, data.company_name, data.resume is not None, len(data.job_description),
    )
    request = build_request(settings, build_user_prompt(data), system_prompt=SYSTEM_PROMPT)
    response = await run_agent(
        client,
        settings,
        request,
        make_validator(data.resume is not None),
        agent=AGENT_KEY,
        sleep=sleep,
    )

    if response.success:
        result = response.data
        logger.info(
            "Job analysis complete: level=%s match=%s required_skills=%d red_flags=%d",
            result.analysis.role_level,
            result.match_analysis.overall_match if result.match_analysis else None,
            len(result.analysis.required_skills),
            len(result.analysis.red_flags),
        )
    return response


def summarize_job_analysis(result: JobAnalysisResult) -> str:
    analysis = result.analysis
    lines = [
        "Job Analysis Summary:",
        f"- Role Level: {analysis.role_level}",
        f"- Required Skills: {len(analysis.required_skills)}",
        f"- Preferred Skills: {len(analysis.preferred_skills)}",
        f"- Red Flags: {len(analysis.red_flags)}",
        f"- Highlights: {len(analysis.highlights)}",
    ]
    match = result.match_analysis
    if match:
        lines += [
            "",
            "Match Analysis:",
            f"- Overall Match: {match.overall_match:g}%",
            f"- Skills Match: {match.skills_match:g}%",
            f"- Experience Match: {match.experience_match:g}%",
            f"- Gaps Identified: {len(match.gaps)}",
        ]
    salary = result.salary_insights
    lines += ["", f"Salary: {salary.estimated_range} ({salary.market_comparison})"]
    return "\n".join(lines)
