"""Resume quality and ATS compatibility analysis."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from ..core.config import AgentSettings
from ..core.errors import invalid_input
from ..core.invoke import build_request, run_agent
from ..core.parsing import json_validator
from ..core.retry import Sleep
from ..models.agent import AgentError, AgentResponse
from ..models.analysis import ResumeAnalysisResult
from ..models.resume import ParsedResumeData
from ..providers.base import ModelClient
from .common import JSON_ONLY

logger = logging.getLogger(__name__)

AGENT_KEY = "resume_analyzer"

SYSTEM_PROMPT = f"""You are an expert resume reviewer and ATS (applicant tracking system) specialist. Give candid, specific and actionable feedback.

Score the resume from 0 to 100 on:
- overall_score: overall quality and impact.
- ats_score: parseability by applicant tracking systems (standard headings, no tables or graphics, keyword coverage).
- readability_score: clarity, concision, strong action verbs, quantified achievements.

Review each section (summary, experience, education, skills) with a 0-100 score, a short feedback paragraph and a list of issues.
Use null for a section score only when the section is missing entirely.

Keyword analysis: keywords that match the target role, important keywords that are missing, and overused words.
List concrete ATS issues. Give 3-8 suggestions, each with the section, a priority of "high", "medium" or "low",
the issue, the suggestion, a before/after example and the expected impact.

{JSON_ONLY}

{{
  "overall_score": 72,
  "ats_score": 65,
  "readability_score": 80,
  "strengths": ["..."],
  "weaknesses": ["..."],
  "sections": {{
    "summary": {{"score": 70, "feedback": "...", "issues": ["..."]}},
    "experience": {{"score": 75, "feedback": "...", "issues": ["..."]}},
    "education": {{"score": 80, "feedback": "...", "issues": []}},
    "skills": {{"score": 60, "feedback": "...", "issues": ["..."]}}
  }},
  "keyword_analysis": {{
    "target_role": "...",
    "target_industry": "...",
    "matched_keywords": ["..."],
    "missing_keywords": ["..."],
    "overused_words": ["..."]
  }},
  "ats_issues": ["..."],
  "suggestions": [
    {{
      "section": "experience",
      "priority": "high | medium | low",
      "issue": "...",
      "suggestion": "...",
      "example": {{"before": "...", "after": "..."}},
      "impact": "..."
    }}
  ]
}}"""

NOT_SPECIFIED = "Not specified - infer from resume"


class ResumeAnalysisInput(BaseModel):
    resume: Optional[ParsedResumeData] = None
    target_role: Optional[str] = None
    target_industry: Optional[str] = None


def validate_resume_analysis_input(data: ResumeAnalysisInput) -> Optional[AgentError]:
    if data.resume is None:
        return invalid_input(["Resume data is required for analysis"])
    resume = data.resume
    if not (resume.summary or resume.experiences or resume.educations or resume.skills):
        return invalid_input(["Resume has no content to analyze"])
    return None


def build_user_prompt(data: ResumeAnalysisInput) -> str:
    return (
        "Analyze this resume and provide comprehensive feedback.\n\n"
        f"# RESUME DATA\n{data.resume.model_dump_json(indent=2)}\n\n"
        f"# TARGET ROLE\n{data.target_role or NOT_SPECIFIED}\n\n"
        f"# TARGET INDUSTRY\n{data.target_industry or NOT_SPECIFIED}"
    )


async def analyze_resume(
    client: ModelClient,
    settings: AgentSettings,
    data: ResumeAnalysisInput,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[ResumeAnalysisResult]:
    error = validate_resume_analysis_input(data)
    if error:
        logger.warning("Resume analysis rejected: %s", error.message)
        return AgentResponse.fail(error)

    logger.info(
        "Starting resume analysis (target_role=%s, target_industry=%s)",
        data.target_role, data.target_industry,
    )
    request = build_request(settings, build_user_prompt(data), system_prompt=SYSTEM_PROMPT)
    response = await run_agent(
        client,
        settings,
        request,
        json_validator(ResumeAnalysisResult),
        agent=AGENT_KEY,
        sleep=sleep,
    )

    if response.success:
        result = response.data
        logger.info(
            "Resume analysis complete: overall=%s ats=%s readability=%s suggestions=%d",
            result.overall_score, result.ats_score, result.readability_score, len(result.suggestions),
        )
    return response
