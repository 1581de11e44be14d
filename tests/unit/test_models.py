"""Tests for models/."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from jobpilot.core.errors import invalid_input, parse_error
from jobpilot.models.agent import AgentResponse
from jobpilot.models.job import Job, JobStatus, ParsedJobData
from jobpilot.models.provider import ModelRequest, TokenUsage


class TestAgentResponse:
    def test_ok_carries_data_only(self):
        response = AgentResponse.ok({"a": 1}, usage=TokenUsage(input_tokens=1, output_tokens=2), model="m")
        assert response.success is True
        assert response.data == {"a": 1}
        assert response.error is None
        assert response.model == "m"

    def test_fail_carries_error_only(self):
        response = AgentResponse.fail(parse_error("bad"))
        assert response.success is False
        assert response.data is None
        assert response.error.code.value == "PARSE_ERROR"

    def test_success_with_error_rejected(self):
        with pytest.raises(ValidationError):
            AgentResponse(success=True, data={"a": 1}, error=parse_error("bad"))

    def test_success_without_data_rejected(self):
        with pytest.raises(ValidationError):
            AgentResponse(success=True)

    def test_failure_without_error_rejected(self):
        with pytest.raises(ValidationError):
            AgentResponse(success=False)

    def test_failure_with_data_rejected(self):
        with pytest.raises(ValidationError):
            AgentResponse(success=False, data={"a": 1}, error=invalid_input(["x"]))

    @pytest.mark.parametrize(
        "response",
        [
            AgentResponse.ok([1]),
            AgentResponse.ok("text"),
            AgentResponse.fail(invalid_input(["x"])),
            AgentResponse.fail(parse_error("y")),
        ],
    )
    def test_success_iff_data_and_no_error(self, response):
        assert response.success == (response.data is not None and response.error is None)


class TestProviderModels:
    def test_total_tokens_derived(self):
        usage = TokenUsage(input_tokens=100, output_tokens=50)
        assert usage.total_tokens == 150
        assert usage.model_dump()["total_tokens"] == 150

    def test_request_is_immutable(self):
        request = ModelRequest(user_message="hi")
        with pytest.raises(ValidationError):
            request.temperature = 0.2


class TestJobModels:
    def test_job_defaults(self):
        job = Job(title="Engineer", company="Acme")
        assert job.status == JobStatus.INTERESTED
        assert job.status_changes == []
        assert len(job.id) == 36

    def test_parsed_job_defaults(self):
        parsed = ParsedJobData(company="Acme", title="Engineer", job_description="Build things")
        assert parsed.location == "Not specified"
        assert parsed.job_type == "FULL_TIME"
        assert parsed.work_mode == "ONSITE"
        assert parsed.salary_range is None

    def test_parsed_job_rejects_blank_title(self):
        with pytest.raises(ValidationError):
            ParsedJobData(company="Acme", title="", job_description="Build things")
