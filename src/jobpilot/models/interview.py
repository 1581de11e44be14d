"""Mock interview data models."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from .analysis import NonEmptyStr, Score

Difficulty = Literal["easy", "medium", "hard"]
InterviewType = Literal["behavioral", "technical", "mixed"]
ReadinessLevel = Literal["ready", "highly-ready", "needs-practice"]


class InterviewQuestion(BaseModel):
    id: str = ""
    question: NonEmptyStr
    category: str
    difficulty: Difficulty
    key_points_to_include: list[str]
    evaluation_criteria: list[str]


class GeneratedQuestions(BaseModel):
    questions: list[InterviewQuestion] = Field(min_length=1)
    interview_context: str
    tips: list[str]


class AnswerEvaluation(BaseModel):
    score: Score
    strengths: list[str]
    improvements: list[str]
    key_points_covered: list[str]
    key_points_missed: list[str]
    example_answer: str
    detailed_feedback: str
    next_steps: list[str]


class AnsweredQuestion(BaseModel):
    """A question, the candidate's answer and its evaluation."""

    question: str
    category: str
    answer: str
    evaluation: AnswerEvaluation


class SessionAnalysis(BaseModel):
    overall_score: Score
    technical_score: Optional[Score] = None
    communication_score: Score
    problem_solving_score: Optional[Score] = None
    strengths: list[str]
    areas_to_improve: list[str]
    detailed_analysis: str
    recommendations: list[str]
    readiness_level: ReadinessLevel
