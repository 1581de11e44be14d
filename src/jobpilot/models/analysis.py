"""AI analysis result models.

Every field without a default is required in the model's JSON reply.
Scores are 0-100 and must be JSON numbers, not numeric strings.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, Field

from .resume import ParsedResumeData

Score = Annotated[float, Field(ge=0, le=100, strict=True)]
NonEmptyStr = Annotated[str, Field(min_length=1)]

RoleLevel = Literal["entry", "mid", "senior", "lead", "executive"]
Priority = Literal["high", "medium", "low"]
Impact = Literal["high", "medium", "low"]
Tone = Literal["professional", "enthusiastic", "formal"]

TONES: tuple[str, ...] = ("professional", "enthusiastic", "formal")


# ---------------------------------------------------------------------------
# Job analysis
# ---------------------------------------------------------------------------


class JobBreakdown(BaseModel):
    role_level: RoleLevel
    key_responsibilities: list[str]
    required_skills: list[str]
    preferred_skills: list[str]
    red_flags: list[str]
    highlights: list[str]


class MatchAnalysis(BaseModel):
    overall_match: Score
    skills_match: Score
    experience_match: Score
    match_reasons: list[str]
    gaps: list[str]
    recommendations: list[str]


class SalaryInsights(BaseModel):
    estimated_range: str
    market_comparison: str
    factors: list[str]


class JobAnalysisResult(BaseModel):
    analysis: JobBreakdown
    match_analysis: Optional[MatchAnalysis] = None
    salary_insights: SalaryInsights
    application_tips: list[str]


# ---------------------------------------------------------------------------
# Resume analysis
# ---------------------------------------------------------------------------


class SectionAnalysis(BaseModel):
    score: Optional[Score]
    feedback: str
    issues: list[str]


class ResumeSections(BaseModel):
    summary: SectionAnalysis
    experience: SectionAnalysis
    education: SectionAnalysis
    skills: SectionAnalysis


class KeywordAnalysis(BaseModel):
    target_role: Optional[str] = None
    target_industry: Optional[str] = None
    matched_keywords: list[str]
    missing_keywords: list[str]
    overused_words: list[str]


class SuggestionExample(BaseModel):
    before: NonEmptyStr
    after: NonEmptyStr


class Suggestion(BaseModel):
    section: NonEmptyStr
    priority: Priority
    issue: NonEmptyStr
    suggestion: NonEmptyStr
    example: SuggestionExample
    impact: NonEmptyStr


class ResumeAnalysisResult(BaseModel):
    overall_score: Score
    ats_score: Score
    readability_score: Score
    strengths: list[str]
    weaknesses: list[str]
    sections: ResumeSections
    keyword_analysis: KeywordAnalysis
    ats_issues: list[str]
    suggestions: list[Suggestion]


# ---------------------------------------------------------------------------
# Resume tailoring
# ---------------------------------------------------------------------------


class ResumeChange(BaseModel):
    section: str
    field: str = ""
    original: str = ""
    modified: str = ""
    reason: str = ""


class KeywordAlignment(BaseModel):
    matched: list[str] = []
    missing: list[str] = []
    suggestions: list[str] = []


class TailorResumeResult(BaseModel):
    tailored_resume: ParsedResumeData
    match_score: Score
    changes: list[ResumeChange] = []
    keyword_alignment: KeywordAlignment = KeywordAlignment()
    recommendations: list[str] = []
    estimated_impact: Impact = "medium"
    ats_score: Optional[Score] = None
    summary: Optional[str] = None


class ResumeDiff(BaseModel):
    section: str
    field: str
    before: Any = None
    after: Any = None


# ---------------------------------------------------------------------------
# Cover letter
# ---------------------------------------------------------------------------


class CoverLetterResult(BaseModel):
    cover_letter: NonEmptyStr
    subject: str
    key_points: list[str]
    matched_requirements: list[str]
    tone: Tone
    word_count: int = Field(ge=1)
    estimated_read_time: str
    suggestions: list[str]
