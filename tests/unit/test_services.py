"""Tests for services/."""

from __future__ import annotations

from datetime import datetime, timedelta

import httpx
import pytest

from jobpilot.agents.mock_interview import QuestionRequest, SessionInput
from jobpilot.core.config import get_effective_config
from jobpilot.core.exceptions import BadRequestError, NotFoundError
from jobpilot.models.agent import ErrorCode
from jobpilot.models.interview import AnsweredQuestion, AnswerEvaluation
from jobpilot.models.job import Job, JobStatus
from jobpilot.services.ai import AIService
from jobpilot.services.jobs import JobService, find_by_id
from jobpilot.services.resumes import ResumeService


@pytest.fixture
def jobs(store) -> JobService:
    return JobService(store)


@pytest.fixture
def resumes(store) -> ResumeService:
    return ResumeService(store)


@pytest.fixture
def ai(store, fake_client, no_sleep) -> AIService:
    return AIService(store, get_effective_config(store.root), fake_client, sleep=no_sleep)


@pytest.fixture
def tracked_job(jobs, job_description) -> Job:
    return jobs.create_job("Senior Backend Engineer", "Acme Payments", description=job_description)


class TestFindById:
    def test_exact_and_prefix(self):
        items = [Job(id="abcd1234", title="a", company="x"), Job(id="abce5678", title="b", company="y")]
        assert find_by_id(items, "abcd1234", "Job").title == "a"
        assert find_by_id(items, "abce", "Job").title == "b"

    def test_ambiguous_prefix(self):
        items = [Job(id="abcd1234", title="a", company="x"), Job(id="abcd5678", title="b", company="y")]
        with pytest.raises(BadRequestError, match="ambiguous"):
            find_by_id(items, "abcd", "Job")

    def test_short_prefix_not_matched(self):
        items = [Job(id="abcd1234", title="a", company="x")]
        with pytest.raises(NotFoundError, match="Job not found: abc"):
            find_by_id(items, "abc", "Job")


class TestJobService:
    def test_create_records_initial_status(self, jobs, tracked_job):
        assert tracked_job.status == JobStatus.INTERESTED
        assert len(tracked_job.status_changes) == 1
        initial = tracked_job.status_changes[0]
        assert initial.from_status is None
        assert initial.to_status == JobStatus.INTERESTED
        assert initial.reason == "Job created"
        assert jobs.get_job(tracked_job.id).title == "Senior Backend Engineer"

    @pytest.mark.parametrize("title,company", [("", "Acme"), ("Engineer", "  ")])
    def test_create_requires_title_and_company(self, jobs, title, company):
        with pytest.raises(BadRequestError):
            jobs.create_job(title, company)

    def test_get_missing(self, jobs):
        with pytest.raises(NotFoundError):
            jobs.get_job("00000000-0000-0000-0000-000000000000")

    def test_list_filters_and_order(self, jobs, store):
        now = datetime.now()
        store.save_jobs(
            [
                Job(title="Old", company="Acme", created_at=now - timedelta(days=3)),
                Job(title="New", company="Globex", status=JobStatus.APPLIED, created_at=now),
                Job(title="Mid", company="Acme Corp", description="Python role", created_at=now - timedelta(days=1)),
            ]
        )
        assert [j.title for j in jobs.list_jobs()] == ["New", "Mid", "Old"]
        assert [j.title for j in jobs.list_jobs(status=JobStatus.APPLIED)] == ["New"]
        assert [j.title for j in jobs.list_jobs(company="acme")] == ["Mid", "Old"]
        assert [j.title for j in jobs.list_jobs(search="python")] == ["Mid"]

    def test_update_status_persists_history(self, jobs, tracked_job):
        jobs.update_status(tracked_job.id, JobStatus.APPLIED, "Applied online")
        job = jobs.get_job(tracked_job.id)
        assert job.status == JobStatus.APPLIED
        assert len(job.status_changes) == 2
        assert job.status_changes[-1].from_status == JobStatus.INTERESTED
        assert job.status_changes[-1].reason == "Applied online"

    def test_update_to_same_status(self, jobs, tracked_job):
        with pytest.raises(BadRequestError, match="already in this status"):
            jobs.update_status(tracked_job.id, JobStatus.INTERESTED)
        assert len(jobs.get_job(tracked_job.id).status_changes) == 1

    def test_add_note(self, jobs, tracked_job):
        jobs.add_note(tracked_job.id, "Recruiter called")
        jobs.add_note(tracked_job.id, "Sent portfolio")
        notes = jobs.get_job(tracked_job.id).notes
        assert "\nRecruiter called\n\n[" in notes
        assert notes.endswith("Sent portfolio\n\n")

    def test_blank_note(self, jobs, tracked_job):
        with pytest.raises(BadRequestError):
            jobs.add_note(tracked_job.id, "  ")

    def test_stats(self, jobs, store):
        now = datetime(2026, 10, 17, 12, 0)
        store.save_jobs(
            [
                Job(title="a", company="x", created_at=datetime(2026, 10, 2)),
                Job(title="b", company="x", status=JobStatus.APPLIED, created_at=datetime(2026, 10, 1)),
                Job(title="c", company="x", status=JobStatus.REJECTED, created_at=datetime(2026, 9, 30)),
                Job(title="d", company="x", status=JobStatus.ACCEPTED, created_at=datetime(2026, 8, 1)),
            ]
        )
        stats = jobs.stats(now=now)
        assert stats.total == 4
        assert stats.active == 2
        assert stats.added_this_month == 2
        assert stats.by_status == {"INTERESTED": 1, "APPLIED": 1, "REJECTED": 1, "ACCEPTED": 1}

    def test_timeline_sorted(self, jobs, tracked_job):
        jobs.update_status(tracked_job.id, JobStatus.APPLIED)
        jobs.update_status(tracked_job.id, JobStatus.INTERVIEW_SCHEDULED)
        timeline = jobs.timeline(tracked_job.id)
        assert [c.to_status for c in timeline] == [
            JobStatus.INTERESTED,
            JobStatus.APPLIED,
            JobStatus.INTERVIEW_SCHEDULED,
        ]

    def test_delete(self, jobs, tracked_job):
        jobs.delete_job(tracked_job.id[:8])
        assert jobs.list_jobs() == []


class TestResumeService:
    def test_add_and_get(self, resumes):
        resume = resumes.add_resume("Main", "Jane Doe\nEngineer")
        assert resumes.get_resume(resume.id).raw_text == "Jane Doe\nEngineer"
        assert resumes.list_resumes()[0].id == resume.id

    def test_empty_text_rejected(self, resumes):
        with pytest.raises(BadRequestError):
            resumes.add_resume("Main", "   ")

    def test_require_parsed(self, resumes, sample_resume):
        raw = resumes.add_resume("Raw", "text")
        with pytest.raises(BadRequestError, match="not been parsed"):
            resumes.require_parsed(raw.id)
        resumes.set_parsed(raw.id, sample_resume)
        assert resumes.require_parsed(raw.id).parsed.personal_info.name == "Jane Doe"


class TestAIService:
    @pytest.mark.asyncio
    async def test_analyze_job_stores_result(
        self, ai, resumes, jobs, store, fake_client, tracked_job, sample_resume, job_analysis_reply, match_analysis
    ):
        resume = resumes.add_resume("Main", "text", parsed=sample_resume)
        fake_client.queue({**job_analysis_reply, "match_analysis": match_analysis})

        response = await ai.analyze_job(tracked_job.id, resume.id)

        assert response.success
        job = jobs.get_job(tracked_job.id)
        assert job.match_score == 84
        assert job.ai_analysis["analysis"]["role_level"] == "senior"
        saved = store.load_analysis("job", tracked_job.id)
        assert saved["kind"] == "job"
        assert saved["model"] == "claude-test"
        assert saved["usage"]["total_tokens"] == 200

    @pytest.mark.asyncio
    async def test_failure_stores_nothing(self, ai, jobs, store, fake_client, tracked_job):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        fake_client.queue(httpx.HTTPStatusError("401", request=request, response=httpx.Response(401, request=request)))

        response = await ai.analyze_job(tracked_job.id)

        assert response.error.code == ErrorCode.AUTHENTICATION_ERROR
        assert jobs.get_job(tracked_job.id).ai_analysis is None
        assert store.load_analysis("job", tracked_job.id) is None

    @pytest.mark.asyncio
    async def test_unparsed_resume_rejected_before_call(self, ai, resumes, fake_client, tracked_job):
        raw = resumes.add_resume("Raw", "text")
        with pytest.raises(BadRequestError):
            await ai.analyze_job(tracked_job.id, raw.id)
        assert fake_client.calls == 0

    @pytest.mark.asyncio
    async def test_analyze_resume(self, ai, resumes, store, fake_client, sample_resume, resume_analysis_reply):
        resume = resumes.add_resume("Main", "text", parsed=sample_resume)
        fake_client.queue(resume_analysis_reply)
        response = await ai.analyze_resume(resume.id, target_role="Staff Engineer")
        assert response.success
        assert store.load_analysis("resume", resume.id)["result"]["overall_score"] == 78

    @pytest.mark.asyncio
    async def test_tailor_and_cover_letter(
        self, ai, resumes, store, fake_client, tracked_job, sample_resume, tailor_reply, cover_letter_reply
    ):
        resume = resumes.add_resume("Main", "text", parsed=sample_resume)
        fake_client.queue(tailor_reply, cover_letter_reply)

        tailored = await ai.tailor_resume(resume.id, tracked_job.id)
        letter = await ai.generate_cover_letter(resume.id, tracked_job.id, tone="formal")

        assert tailored.success and letter.success
        ref = f"{resume.id}-{tracked_job.id}"
        assert store.load_analysis("tailor", ref)["result"]["match_score"] == 86
        assert store.load_analysis("cover-letter", ref)["result"]["tone"] == "professional"
        assert "Acme Payments" in fake_client.requests[1].user_message

    @pytest.mark.asyncio
    async def test_import_resume(self, ai, resumes, fake_client, parsed_resume_reply):
        fake_client.queue(parsed_resume_reply)
        response = await ai.import_resume("Main", "Jane Doe resume text", file_name="cv.txt")
        assert response.success
        stored = resumes.get_resume(response.data.id)
        assert stored.parsed.personal_info.name == "Jane Doe"
        assert stored.raw_text == "Jane Doe resume text"

    @pytest.mark.asyncio
    async def test_import_resume_failure_stores_nothing(self, ai, resumes, fake_client):
        fake_client.queue("not json", "still not json")
        response = await ai.import_resume("Main", "Jane Doe resume text")
        assert response.error.code == ErrorCode.PARSE_ERROR
        assert resumes.list_resumes() == []

    @pytest.mark.asyncio
    async def test_import_job_from_text(self, ai, jobs, fake_client, parsed_job_reply):
        fake_client.queue(parsed_job_reply)
        posting = "Acme Payments is hiring a Senior Backend Engineer. " * 3
        response = await ai.import_job(text=posting)
        assert response.success
        job = jobs.get_job(response.data.id)
        assert job.company == "Acme Payments"
        assert job.work_mode == "REMOTE"
        assert job.status_changes[0].reason == "Job created"

    @pytest.mark.asyncio
    async def test_interview_flow(
        self, ai, store, fake_client, questions_reply, evaluation_reply, session_reply
    ):
        fake_client.queue(questions_reply, session_reply)
        questions = await ai.interview_questions(QuestionRequest(job_title="Engineer", company_name="Acme"))
        assert len(questions.data.questions) == 2

        session = SessionInput(
            job_title="Engineer",
            company_name="Acme",
            answered=[
                AnsweredQuestion(
                    question=questions.data.questions[0].question,
                    category="behavioral",
                    answer="I cut latency by 40% with caching.",
                    evaluation=AnswerEvaluation.model_validate(evaluation_reply),
                )
            ],
        )
        analysis = await ai.analyze_interview(session)
        assert analysis.success
        saved = list(store.analyses_dir.glob("interview-*.json"))
        assert len(saved) == 1
