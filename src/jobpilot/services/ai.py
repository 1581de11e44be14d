"""AI features over stored jobs and resumes.

Each method runs an agent and, when it succeeds, persists the validated
result in the workspace. Failures come back as the agent's
``AgentResponse`` untouched; nothing is stored for them.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..agents import (
    cover_letter,
    job_analyzer,
    job_parser,
    mock_interview,
    resume_analyzer,
    resume_parser,
    resume_tailor,
)
from ..core.config import get_agent_settings
from ..core.retry import Sleep
from ..core.store import WorkspaceStore
from ..models.agent import AgentResponse
from ..models.analysis import CoverLetterResult, JobAnalysisResult, ResumeAnalysisResult, TailorResumeResult
from ..models.interview import AnswerEvaluation, GeneratedQuestions, SessionAnalysis
from ..models.job import Job, Resume
from ..providers.base import ModelClient
from .jobs import JobService
from .resumes import ResumeService

logger = logging.getLogger(__name__)


class AIService:
    def __init__(
        self,
        store: WorkspaceStore,
        config: dict,
        client: ModelClient,
        sleep: Optional[Sleep] = None,
    ):
        self.store = store
        self.config = config
        self.client = client
        self.sleep = sleep
        self.jobs = JobService(store)
        self.resumes = ResumeService(store)

    def _settings(self, agent_key: str):
        return get_agent_settings(self.config, agent_key)

    def _persist(self, kind: str, ref_id: str, response: AgentResponse) -> None:
        payload = {
            "kind": kind,
            "created_at": datetime.now().isoformat(timespec="seconds"),
            "model": response.model,
            "usage": response.usage.model_dump() if response.usage else None,
            "result": _dump(response.data),
        }
        self.store.save_analysis(kind, ref_id, payload)

    # -- analysis -----------------------------------------------------------

    async def analyze_job(self, job_id: str, resume_id: Optional[str] = None) -> AgentResponse[JobAnalysisResult]:
        job = self.jobs.get_job(job_id)
        resume = self.resumes.require_parsed(resume_id).parsed if resume_id else None

        data = job_analyzer.JobAnalysisInput(
            job_title=job.title,
            company_name=job.company,
            job_description=job.description,
            location=job.location,
            salary_range=job.salary_range,
            job_type=job.job_type,
            work_mode=job.work_mode,
            resume=resume,
        )
        response = await job_analyzer.analyze_job(
            self.client, self._settings(job_analyzer.AGENT_KEY), data, sleep=self.sleep
        )
        if response.success:
            result = response.data
            match_score = result.match_analysis.overall_match if result.match_analysis else None
            self.jobs.set_analysis(job.id, result.model_dump(mode="json"), match_score)
            self._persist("job", job.id, response)
        return response

    async def analyze_resume(
        self,
        resume_id: str,
        target_role: Optional[str] = None,
        target_industry: Optional[str] = None,
    ) -> AgentResponse[ResumeAnalysisResult]:
        resume = self.resumes.require_parsed(resume_id)
        data = resume_analyzer.ResumeAnalysisInput(
            resume=resume.parsed, target_role=target_role, target_industry=target_industry
        )
        response = await resume_analyzer.analyze_resume(
            self.client, self._settings(resume_analyzer.AGENT_KEY), data, sleep=self.sleep
        )
        if response.success:
            self._persist("resume", resume.id, response)
        return response

    async def tailor_resume(self, resume_id: str, job_id: str) -> AgentResponse[TailorResumeResult]:
        resume = self.resumes.require_parsed(resume_id)
        job = self.jobs.get_job(job_id)
        data = resume_tailor.TailorResumeInput(
            resume=resume.parsed,
            job_description=job.description,
            job_title=job.title,
            company_name=job.company,
        )
        response = await resume_tailor.tailor_resume(
            self.client, self._settings(resume_tailor.AGENT_KEY), data, sleep=self.sleep
        )
        if response.success:
            self._persist("tailor", f"{resume.id}-{job.id}", response)
        return response

    async def generate_cover_letter(
        self,
        resume_id: str,
        job_id: str,
        tone: str = "professional",
        additional_notes: Optional[str] = None,
    ) -> AgentResponse[CoverLetterResult]:
        resume = self.resumes.require_parsed(resume_id)
        job = self.jobs.get_job(job_id)
        data = cover_letter.CoverLetterInput(
            resume=resume.parsed,
            job_description=job.description,
            job_title=job.title,
            company_name=job.company,
            tone=tone,
            additional_notes=additional_notes,
        )
        response = await cover_letter.generate_cover_letter(
            self.client, self._settings(cover_letter.AGENT_KEY), data, sleep=self.sleep
        )
        if response.success:
            self._persist("cover-letter", f"{resume.id}-{job.id}", response)
        return response

    # -- parsing ------------------------------------------------------------

    async def import_resume(self, title: str, text: str, file_name: Optional[str] = None) -> AgentResponse[Resume]:
        """Parse resume text and store it with its structured data."""
        response = await resume_parser.parse_resume(
            self.client,
            self._settings(resume_parser.AGENT_KEY),
            resume_parser.ResumeParseInput(resume_text=text, file_name=file_name),
            sleep=self.sleep,
        )
        if not response.success:
            return AgentResponse.fail(response.error)

        resume = self.resumes.add_resume(title, text, parsed=response.data)
        return AgentResponse.ok(resume, usage=response.usage, model=response.model, stop_reason=response.stop_reason)

    async def import_job(self, url: Optional[str] = None, text: Optional[str] = None) -> AgentResponse[Job]:
        """Parse a posting from a URL or raw text and track it as a new job."""
        settings = self._settings(job_parser.AGENT_KEY)
        if url:
            response = await job_parser.parse_job_url(
                self.client, settings, url, fetch_config=self.config.get("fetch"), sleep=self.sleep
            )
        else:
            response = await job_parser.parse_job_posting(
                self.client, settings, job_parser.JobParseInput(content=text or ""), sleep=self.sleep
            )
        if not response.success:
            return AgentResponse.fail(response.error)

        job = self.jobs.create_from_parsed(response.data, url=url)
        return AgentResponse.ok(job, usage=response.usage, model=response.model, stop_reason=response.stop_reason)

    # -- mock interview -----------------------------------------------------

    async def interview_questions(self, request: mock_interview.QuestionRequest) -> AgentResponse[GeneratedQuestions]:
        return await mock_interview.generate_questions(
            self.client, self._settings(mock_interview.AGENT_KEY), request, sleep=self.sleep
        )

    async def evaluate_answer(self, data: mock_interview.AnswerInput) -> AgentResponse[AnswerEvaluation]:
        return await mock_interview.evaluate_answer(
            self.client, self._settings(mock_interview.AGENT_KEY), data, sleep=self.sleep
        )

    async def analyze_interview(self, data: mock_interview.SessionInput) -> AgentResponse[SessionAnalysis]:
        response = await mock_interview.analyze_session(
            self.client, self._settings(mock_interview.AGENT_KEY), data, sleep=self.sleep
        )
        if response.success:
            session_id = datetime.now().strftime("%Y%m%dT%H%M%S")
            self.store.save_analysis("interview", session_id, {
                "kind": "interview",
                "job_title": data.job_title,
                "company_name": data.company_name,
                "answers": [qa.model_dump(mode="json") for qa in data.answered],
                "result": _dump(response.data),
            })
        return response


def _dump(data) -> object:
    return data.model_dump(mode="json") if isinstance(data, BaseModel) else data
