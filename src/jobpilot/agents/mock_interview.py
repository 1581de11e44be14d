"""Mock interviews: question generation, answer evaluation, session analysis."""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel

from ..core.config import AgentSettings
from ..core.errors import invalid_input
from ..core.invoke import build_request, run_agent
from ..core.parsing import json_validator
from ..core.retry import Sleep
from ..models.agent import AgentError, AgentResponse
from ..models.interview import (
    AnsweredQuestion,
    AnswerEvaluation,
    GeneratedQuestions,
    InterviewQuestion,
    SessionAnalysis,
)
from ..providers.base import ModelClient
from .common import JSON_ONLY, ensure_object, is_blank, list_or_empty

logger = logging.getLogger(__name__)

AGENT_KEY = "mock_interview"

EVALUATION_TEMPERATURE = 0.3
ANALYSIS_TEMPERATURE = 0.5

MIN_QUESTIONS = 1
MAX_QUESTIONS = 20
MIN_ANSWER_CHARS = 10
DESCRIPTION_EXCERPT_CHARS = 2000
ANSWER_EXCERPT_CHARS = 200

DIFFICULTIES = ("easy", "medium", "hard")
INTERVIEW_TYPES = ("behavioral", "technical", "mixed")

QUESTIONS_PROMPT = f"""You are an expert interview coach with deep knowledge of technical and behavioral interviewing.

Generate realistic interview questions that real interviewers for this company and role would ask.
- Consider the interviewers' roles: technical interviewers test depth, hiring managers test collaboration and fit,
  senior leaders test strategy and impact.
- Match the difficulty: easy questions are common and direct, medium need thoughtful answers,
  hard involve complex scenarios or deep knowledge.
- Technical interviews include coding, system design or domain questions. Behavioral ones suit the STAR method.
- Give key points a strong answer includes and criteria for evaluating it.

{JSON_ONLY}

{{
  "questions": [
    {{
      "id": "q1",
      "question": "...",
      "category": "behavioral | technical | situational | problem-solving | cultural-fit",
      "difficulty": "easy | medium | hard",
      "key_points_to_include": ["..."],
      "evaluation_criteria": ["..."]
    }}
  ],
  "interview_context": "What to expect in this interview",
  "tips": ["..."]
}}"""

EVALUATION_PROMPT = f"""You are an expert interview evaluator. Give fair, honest and actionable feedback on a single answer.

Scoring: 90-100 exceptional, 80-89 strong, 70-79 good, 60-69 adequate, 50-59 weak, below 50 poor.
Name the key points that were covered and missed, and write an example of a strong answer.

{JSON_ONLY}

{{
  "score": 78,
  "strengths": ["..."],
  "improvements": ["..."],
  "key_points_covered": ["..."],
  "key_points_missed": ["..."],
  "example_answer": "...",
  "detailed_feedback": "...",
  "next_steps": ["..."]
}}"""

ANALYSIS_PROMPT = f"""You are an expert interview coach reviewing a complete mock interview session.

Look for patterns across answers and be encouraging but honest.
- overall_score: weighted average over all answers.
- technical_score and problem_solving_score: only when such questions were asked, otherwise null.
- communication_score: clarity, structure and concision across all answers.
- readiness_level: "highly-ready" (85+), "ready" (70-84) or "needs-practice" (below 70).

{JSON_ONLY}

{{
  "overall_score": 82,
  "technical_score": 85,
  "communication_score": 80,
  "problem_solving_score": null,
  "strengths": ["..."],
  "areas_to_improve": ["..."],
  "detailed_analysis": "...",
  "recommendations": ["..."],
  "readiness_level": "ready | highly-ready | needs-practice"
}}"""


class Interviewer(BaseModel):
    name: Optional[str] = None
    title: Optional[str] = None
    linkedin_url: Optional[str] = None


class QuestionRequest(BaseModel):
    job_title: str = ""
    company_name: str = ""
    job_description: Optional[str] = None
    interview_type: str = "mixed"
    difficulty: str = "medium"
    number_of_questions: int = 5
    interviewers: list[Interviewer] = []


class AnswerInput(BaseModel):
    question: Optional[InterviewQuestion] = None
    answer: str = ""
    job_title: str = ""
    company_name: str = ""


class SessionInput(BaseModel):
    interview_type: str = "mixed"
    job_title: str = ""
    company_name: str = ""
    answered: list[AnsweredQuestion] = []


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def validate_question_request(data: QuestionRequest) -> Optional[AgentError]:
    errors = []
    if is_blank(data.job_title):
        errors.append("Job title is required")
    if is_blank(data.company_name):
        errors.append("Company name is required")
    if data.difficulty not in DIFFICULTIES:
        errors.append(f"Difficulty must be one of: {', '.join(DIFFICULTIES)}")
    if data.interview_type not in INTERVIEW_TYPES:
        errors.append(f"Interview type must be one of: {', '.join(INTERVIEW_TYPES)}")
    if not MIN_QUESTIONS <= data.number_of_questions <= MAX_QUESTIONS:
        errors.append(f"Number of questions must be between {MIN_QUESTIONS} and {MAX_QUESTIONS}")
    return invalid_input(errors) if errors else None


def validate_answer_input(data: AnswerInput) -> Optional[AgentError]:
    errors = []
    if data.question is None:
        errors.append("Question is required")
    if is_blank(data.answer):
        errors.append("Answer is required")
    elif len(data.answer.strip()) < MIN_ANSWER_CHARS:
        errors.append(f"Answer must be at least {MIN_ANSWER_CHARS} characters")
    return invalid_input(errors) if errors else None


def validate_session_input(data: SessionInput) -> Optional[AgentError]:
    if not data.answered:
        return invalid_input(["At least one answered question is required"])
    return None


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def build_questions_prompt(data: QuestionRequest) -> str:
    lines = [
        f"Generate {data.number_of_questions} {data.difficulty} interview questions for this interview.",
        "",
        f"Job Title: {data.job_title}",
        f"Company: {data.company_name}",
        f"Interview Type: {data.interview_type}",
        f"Difficulty Level: {data.difficulty}",
    ]
    if data.job_description:
        lines += ["", "Job Description:", data.job_description[:DESCRIPTION_EXCERPT_CHARS]]

    named = [i for i in data.interviewers if i.name]
    if named:
        lines += ["", "Interviewers:"]
        for interviewer in named:
            line = f"- {interviewer.name}"
            if interviewer.title:
                line += f" ({interviewer.title})"
            if interviewer.linkedin_url:
                line += f" - LinkedIn: {interviewer.linkedin_url}"
            lines.append(line)
        lines.append("Tailor the questions to each interviewer's role and background.")
    return "\n".join(lines)


def build_evaluation_prompt(data: AnswerInput) -> str:
    question = data.question
    key_points = "\n".join(f"- {p}" for p in question.key_points_to_include) or "- (none given)"
    criteria = "\n".join(f"- {c}" for c in question.evaluation_criteria) or "- (none given)"
    return (
        "Evaluate this interview answer.\n\n"
        f"Question: {question.question}\n"
        f"Question Category: {question.category}\n"
        f"Job Context: {data.job_title} at {data.company_name}\n\n"
        f"Key Points Expected:\n{key_points}\n\n"
        f"Evaluation Criteria:\n{criteria}\n\n"
        f"Candidate's Answer:\n{data.answer}"
    )


def _excerpt(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def build_session_prompt(data: SessionInput) -> str:
    lines = [
        "Analyze this complete mock interview session.",
        "",
        f"Interview Type: {data.interview_type}",
        f"Job: {data.job_title} at {data.company_name}",
        f"Total Questions: {len(data.answered)}",
        "",
        "Questions and Evaluations:",
    ]
    for i, qa in enumerate(data.answered, 1):
        ev = qa.evaluation
        lines += [
            f"{i}. Question ({qa.category}): {qa.question}",
            f"   Answer: {_excerpt(qa.answer, ANSWER_EXCERPT_CHARS)}",
            f"   Score: {ev.score:g}/100",
            f"   Strengths: {', '.join(ev.strengths)}",
            f"   Needs Work: {', '.join(ev.improvements)}",
        ]
    return "\n".join(lines)


def normalize_questions(data: Any) -> dict:
    data = ensure_object(data)
    list_or_empty(data, "tips")
    questions = data.get("questions")
    if isinstance(questions, list):
        for i, question in enumerate(questions, 1):
            if isinstance(question, dict) and not question.get("id"):
                question["id"] = f"q{i}"
    return data


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


async def generate_questions(
    client: ModelClient,
    settings: AgentSettings,
    data: QuestionRequest,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[GeneratedQuestions]:
    error = validate_question_request(data)
    if error:
        logger.warning("Question generation rejected: %s", error.message)
        return AgentResponse.fail(error)

    logger.info(
        "Generating %d %s %s questions for %s at %s",
        data.number_of_questions, data.difficulty, data.interview_type, data.job_title, data.company_name,
    )
    request = build_request(settings, build_questions_prompt(data), system_prompt=QUESTIONS_PROMPT)
    response = await run_agent(
        client,
        settings,
        request,
        json_validator(GeneratedQuestions, normalize=normalize_questions),
        agent=f"{AGENT_KEY}.questions",
        sleep=sleep,
    )
    if response.success:
        logger.info("Generated %d questions", len(response.data.questions))
    return response


async def evaluate_answer(
    client: ModelClient,
    settings: AgentSettings,
    data: AnswerInput,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[AnswerEvaluation]:
    error = validate_answer_input(data)
    if error:
        logger.warning("Answer evaluation rejected: %s", error.message)
        return AgentResponse.fail(error)

    logger.info("Evaluating %s answer (%d chars)", data.question.category, len(data.answer))
    request = build_request(
        settings,
        build_evaluation_prompt(data),
        system_prompt=EVALUATION_PROMPT,
        temperature=EVALUATION_TEMPERATURE,
    )
    response = await run_agent(
        client,
        settings,
        request,
        json_validator(AnswerEvaluation),
        agent=f"{AGENT_KEY}.evaluation",
        sleep=sleep,
    )
    if response.success:
        logger.info("Answer scored %s", response.data.score)
    return response


async def analyze_session(
    client: ModelClient,
    settings: AgentSettings,
    data: SessionInput,
    sleep: Optional[Sleep] = None,
) -> AgentResponse[SessionAnalysis]:
    error = validate_session_input(data)
    if error:
        logger.warning("Session analysis rejected: %s", error.message)
        return AgentResponse.fail(error)

    logger.info("Analyzing %s session with %d answers", data.interview_type, len(data.answered))
    request = build_request(
        settings,
        build_session_prompt(data),
        system_prompt=ANALYSIS_PROMPT,
        temperature=ANALYSIS_TEMPERATURE,
    )
    response = await run_agent(
        client,
        settings,
        request,
        json_validator(SessionAnalysis),
        agent=f"{AGENT_KEY}.analysis",
        sleep=sleep,
    )
    if response.success:
        logger.info(
            "Session analysis complete: overall=%s readiness=%s",
            response.data.overall_score, response.data.readiness_level,
        )
    return response
