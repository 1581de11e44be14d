"""Shared fixtures for jobpilot tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import docx
import pytest

from jobpilot.core.config import AgentSettings
from jobpilot.core.store import WorkspaceStore
from jobpilot.models.provider import ModelRequest, RawResponse, TokenUsage
from jobpilot.models.resume import Education, Experience, ParsedResumeData, PersonalInfo, Skill


class FakeClient:
    """In-memory model client.

    Replies are consumed in order. A string is returned as the reply text,
    a dict or list is JSON-encoded first, and an exception is raised.
    """

    name = "fake"

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.requests: list[ModelRequest] = []

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def complete(self, request: ModelRequest) -> RawResponse:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError("unexpected model call")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if not isinstance(reply, str):
            reply = json.dumps(reply)
        return RawResponse(
            text=reply,
            usage=TokenUsage(input_tokens=120, output_tokens=80),
            model="claude-test",
            stop_reason="end_turn",
        )


class SleepRecorder:
    """Async sleep replacement that records the requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def settings() -> AgentSettings:
    return AgentSettings(
        model="claude-test",
        temperature=0.5,
        max_tokens=2000,
        max_retries=3,
        retry_delay_seconds=0,
    )


@pytest.fixture
def store(tmp_path: Path) -> WorkspaceStore:
    """An initialized workspace in a temp directory."""
    workspace = WorkspaceStore(tmp_path)
    workspace.initialize()
    return workspace


def write_text_pdf(path: Path, lines: list[str]) -> Path:
    """Write a one-page PDF with ``lines`` in Helvetica."""
    ops = ["BT", "/F1 12 Tf", "72 720 Td", "14 TL"]
    ops += [f"({line}) Tj T*" for line in lines]
    ops.append("ET")
    stream = "\n".join(ops).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)

    path.write_bytes(bytes(out))
    return path


@pytest.fixture
def resume_pdf(tmp_path: Path) -> Path:
    return write_text_pdf(tmp_path / "resume.pdf", ["Jane Doe", "Senior Software Engineer at Initech"])


@pytest.fixture
def resume_docx(tmp_path: Path) -> Path:
    document = docx.Document()
    document.add_paragraph("Jane Doe")
    document.add_paragraph("")
    document.add_paragraph("")
    document.add_paragraph("")
    document.add_paragraph("Senior Software Engineer at Initech")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Skills"
    table.rows[0].cells[1].text = "Python, PostgreSQL"
    path = tmp_path / "resume.docx"
    document.save(str(path))
    return path


@pytest.fixture
def sample_resume() -> ParsedResumeData:
    return ParsedResumeData(
        personal_info=PersonalInfo(
            name="Jane Doe",
            email="jane@example.com",
            phone="555-0100",
            location="Austin, TX",
        ),
        summary="Backend engineer with six years of Python and distributed systems experience.",
        experiences=[
            Experience(
                company="Initech",
                position="Senior Software Engineer",
                start_date="2021-03",
                is_current=True,
                achievements=[
                    "Cut API latency by 40% by introducing request caching",
                    "Led migration of 12 services to Kubernetes",
                ],
                technologies=["Python", "PostgreSQL", "Kubernetes"],
            ),
            Experience(
                company="Globex",
                position="Software Engineer",
                start_date="2018-06",
                end_date="2021-02",
                achievements=["Built the billing event pipeline"],
                technologies=["Python", "Kafka"],
            ),
        ],
        educations=[
            Education(
                institution="University of Texas",
                degree="Bachelor of Science",
                field_of_study="Computer Science",
                end_date="2018",
                gpa=3.7,
            )
        ],
        skills=[
            Skill(name="Python", category="Programming Languages", level="Expert"),
            Skill(name="PostgreSQL", category="Databases"),
            Skill(name="Kubernetes", category="Tools"),
        ],
    )


@pytest.fixture
def job_description() -> str:
    return (
        "We are looking for a Senior Backend Engineer to design and build our payments platform.\n\n"
        "Requirements:\n"
        "- 5+ years of Python\n"
        "- Experience with PostgreSQL and distributed systems\n\n"
        "Preferred:\n"
        "- Kubernetes\n"
        "- Payments industry experience"
    )


# ---------------------------------------------------------------------------
# Model replies
# ---------------------------------------------------------------------------


@pytest.fixture
def job_analysis_reply() -> dict:
    return {
        "analysis": {
            "role_level": "senior",
            "key_responsibilities": ["Design the payments platform", "Mentor engineers"],
            "required_skills": ["Python", "PostgreSQL", "Distributed systems"],
            "preferred_skills": ["Kubernetes"],
            "red_flags": [],
            "highlights": ["Modern stack"],
        },
        "salary_insights": {
            "estimated_range": "$150,000 - $190,000",
            "market_comparison": "Salary not disclosed",
            "factors": ["Seniority", "Location"],
        },
        "application_tips": ["Lead with the latency work", "Mention Kubernetes migration"],
    }


@pytest.fixture
def match_analysis() -> dict:
    return {
        "overall_match": 84,
        "skills_match": 88,
        "experience_match": 80,
        "match_reasons": ["Strong Python background"],
        "gaps": ["No payments experience"],
        "recommendations": ["Highlight the billing pipeline"],
    }


@pytest.fixture
def resume_analysis_reply() -> dict:
    section = {"score": 75, "feedback": "Solid.", "issues": []}
    return {
        "overall_score": 78,
        "ats_score": 70,
        "readability_score": 82,
        "strengths": ["Quantified achievements"],
        "weaknesses": ["Summary is generic"],
        "sections": {
            "summary": section,
            "experience": section,
            "education": section,
            "skills": {"score": None, "feedback": "Missing categories.", "issues": ["No levels"]},
        },
        "keyword_analysis": {
            "matched_keywords": ["Python"],
            "missing_keywords": ["Terraform"],
            "overused_words": ["responsible"],
        },
        "ats_issues": [],
        "suggestions": [
            {
                "section": "summary",
                "priority": "high",
                "issue": "Generic summary",
                "suggestion": "Name the domain you work in",
                "example": {"before": "Backend engineer", "after": "Payments backend engineer"},
                "impact": "Clearer positioning",
            }
        ],
    }


@pytest.fixture
def tailor_reply(sample_resume: ParsedResumeData) -> dict:
    tailored = sample_resume.model_dump()
    tailored["summary"] = "Payments-focused backend engineer with six years of Python."
    return {
        "tailored_resume": tailored,
        "match_score": 86,
        "ats_score": 90,
        "summary": "Reframed the summary toward payments.",
        "changes": [
            {
                "section": "summary",
                "field": "text",
                "original": sample_resume.summary,
                "modified": tailored["summary"],
                "reason": "Match the posting's domain",
            }
        ],
        "keyword_alignment": {
            "required_skills": {"present": ["Python", "PostgreSQL"], "missing": ["Payments"]},
            "added_keywords": ["payments"],
        },
        "recommendations": ["Add a payments side project"],
    }


@pytest.fixture
def cover_letter_reply() -> dict:
    return {
        "cover_letter": "Dear Hiring Manager,\n\nI am excited to apply.\n\nSincerely,\nJane Doe",
        "subject": "Application for Senior Backend Engineer - Jane Doe",
        "key_points": ["Latency work"],
        "matched_requirements": ["Python"],
        "tone": "professional",
        "word_count": 12,
        "estimated_read_time": "1 minute",
        "suggestions": ["Mention a payments metric"],
    }


@pytest.fixture
def parsed_job_reply() -> dict:
    return {
        "company": "  Acme Payments ",
        "title": "Senior Backend Engineer",
        "job_description": "Design and build the payments platform.",
        "location": "Remote, US",
        "salary_range": "$150k - $190k",
        "job_type": "FULL_TIME",
        "work_mode": "REMOTE",
    }


@pytest.fixture
def parsed_resume_reply() -> dict:
    return {
        "personal_info": {"name": "Jane Doe", "email": "jane@example.com"},
        "summary": "Backend engineer.",
        "experiences": [
            {"company": "Initech", "position": "Engineer", "start_date": "2021-03", "is_current": True}
        ],
        "educations": [{"institution": "UT", "degree": "BS", "field_of_study": "CS"}],
        "skills": ["Python", {"name": "Go", "category": "Programming Languages"}],
        "certifications": None,
    }


@pytest.fixture
def questions_reply() -> dict:
    return {
        "questions": [
            {
                "question": "Tell me about a time you reduced latency.",
                "category": "behavioral",
                "difficulty": "medium",
                "key_points_to_include": ["Situation", "Result"],
                "evaluation_criteria": ["Uses metrics"],
            },
            {
                "id": "custom",
                "question": "How would you design an idempotent payments API?",
                "category": "technical",
                "difficulty": "medium",
                "key_points_to_include": ["Idempotency keys"],
                "evaluation_criteria": ["Correctness"],
            },
        ],
        "interview_context": "A mixed technical and behavioral loop.",
        "tips": ["Use the STAR method"],
    }


@pytest.fixture
def evaluation_reply() -> dict:
    return {
        "score": 76,
        "strengths": ["Clear structure"],
        "improvements": ["Quantify the result"],
        "key_points_covered": ["Situation"],
        "key_points_missed": ["Result"],
        "example_answer": "At Initech I ...",
        "detailed_feedback": "Good start.",
        "next_steps": ["Practice metrics"],
    }


@pytest.fixture
def session_reply() -> dict:
    return {
        "overall_score": 74,
        "technical_score": None,
        "communication_score": 80,
        "problem_solving_score": None,
        "strengths": ["Structured answers"],
        "areas_to_improve": ["Metrics"],
        "detailed_analysis": "Solid foundation.",
        "recommendations": ["Practice system design"],
        "readiness_level": "ready",
    }
