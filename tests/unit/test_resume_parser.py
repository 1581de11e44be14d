"""Tests for agents/resume_parser.py."""

from __future__ import annotations

import logging

import pytest

from jobpilot.agents.resume_parser import (
    MAX_RESUME_CHARS,
    ResumeParseInput,
    normalize_resume,
    parse_resume,
    resume_warnings,
    truncate_resume_text,
    validate_resume_parse_input,
)
from jobpilot.models.agent import ErrorCode
from jobpilot.models.resume import Education, Experience, ParsedResumeData, PersonalInfo

RESUME_TEXT = """Jane Doe
jane@example.com | 555-0100

Experience
Senior Software Engineer, Initech (2021 - present)
"""


class TestValidation:
    @pytest.mark.parametrize("text", ["", "   \n\t"])
    def test_blank_rejected(self, text):
        error = validate_resume_parse_input(ResumeParseInput(resume_text=text))
        assert error.details["errors"] == ["Resume text is empty or invalid"]

    @pytest.mark.asyncio
    async def test_no_call_for_blank(self, fake_client, settings, no_sleep):
        response = await parse_resume(fake_client, settings, ResumeParseInput(), sleep=no_sleep)
        assert response.error.code == ErrorCode.INVALID_INPUT
        assert fake_client.calls == 0


class TestTruncate:
    def test_short_text_untouched(self):
        assert truncate_resume_text("hello") == "hello"

    def test_long_text_truncated_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="jobpilot.agents.resume_parser"):
            text = truncate_resume_text("x" * (MAX_RESUME_CHARS + 10), "cv.txt")
        assert len(text) == MAX_RESUME_CHARS
        assert "truncated" in caplog.text


class TestNormalizeResume:
    def test_defaults_and_bare_skills(self, parsed_resume_reply):
        data = normalize_resume(parsed_resume_reply)
        assert data["certifications"] == []
        assert data["skills"] == [{"name": "Python"}, {"name": "Go", "category": "Programming Languages"}]

    def test_null_personal_info(self):
        data = normalize_resume({"personal_info": None})
        assert data["personal_info"] == {}
        assert data["experiences"] == []

    def test_null_required_strings_filled(self):
        data = normalize_resume(
            {"experiences": [{"company": None, "position": "Engineer", "start_date": None}]}
        )
        assert data["experiences"][0]["company"] == ""
        assert data["experiences"][0]["start_date"] == ""


class TestWarnings:
    def test_complete_resume_has_none(self, sample_resume):
        assert resume_warnings(sample_resume) == []

    def test_empty_resume(self):
        warnings = resume_warnings(ParsedResumeData())
        assert warnings == [
            "Name not found in resume",
            "No contact information (email or phone) found",
            "No work experience found",
            "No education information found",
            "No skills found",
        ]

    def test_field_level_warnings(self):
        data = ParsedResumeData(
            personal_info=PersonalInfo(name="Jane", email="not-an-email"),
            experiences=[Experience(company="", position="Engineer")],
            educations=[Education(institution="UT", degree="BS", gpa=7.5)],
        )
        warnings = resume_warnings(data)
        assert "Invalid email format: not-an-email" in warnings
        assert "Experience 1: Missing company name" in warnings
        assert "Experience 1: Missing start date" in warnings
        assert "Education 1: Missing field of study" in warnings
        assert "Education 1: GPA 7.5 is out of valid range (0-5)" in warnings


class TestParseResume:
    @pytest.mark.asyncio
    async def test_success(self, fake_client, settings, no_sleep, parsed_resume_reply):
        fake_client.queue(parsed_resume_reply)
        response = await parse_resume(
            fake_client, settings, ResumeParseInput(resume_text=RESUME_TEXT, file_name="cv.txt"), sleep=no_sleep
        )
        assert response.success
        assert response.data.personal_info.name == "Jane Doe"
        assert [s.name for s in response.data.skills] == ["Python", "Go"]
        assert RESUME_TEXT in fake_client.requests[0].user_message

    @pytest.mark.asyncio
    async def test_warnings_do_not_fail(self, fake_client, settings, no_sleep, caplog):
        fake_client.queue({"summary": "Just a summary"})
        with caplog.at_level(logging.WARNING, logger="jobpilot.agents.resume_parser"):
            response = await parse_resume(
                fake_client, settings, ResumeParseInput(resume_text=RESUME_TEXT), sleep=no_sleep
            )
        assert response.success
        assert "No work experience found" in caplog.text

    @pytest.mark.asyncio
    async def test_experience_without_position(self, fake_client, settings, no_sleep):
        fake_client.queue({"experiences": [{"company": "Initech"}]})
        response = await parse_resume(
            fake_client, settings, ResumeParseInput(resume_text=RESUME_TEXT), sleep=no_sleep
        )
        assert response.success
        assert response.data.experiences[0].position == ""
