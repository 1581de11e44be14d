"""Job tracking: create, list, move between statuses, notes and stats."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..core.exceptions import BadRequestError, NotFoundError
from ..core.status import TERMINAL_STATUSES, transition_job
from ..core.store import WorkspaceStore
from ..models.job import Job, JobStatus, ParsedJobData, StatusChange

logger = logging.getLogger(__name__)

MIN_ID_PREFIX = 4


class JobStats(BaseModel):
    total: int
    active: int
    by_status: dict[str, int]
    added_this_month: int


def find_by_id(items: list, item_id: str, label: str):
    """Exact id match, or a unique prefix of at least four characters."""
    for item in items:
        if item.id == item_id:
            return item
    if len(item_id) >= MIN_ID_PREFIX:
        matches = [item for item in items if item.id.startswith(item_id)]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise BadRequestError(f"{label} id prefix '{item_id}' is ambiguous")
    raise NotFoundError(f"{label} not found: {item_id}")


class JobService:
    def __init__(self, store: WorkspaceStore):
        self.store = store

    def create_job(
        self,
        title: str,
        company: str,
        description: str = "",
        location: Optional[str] = None,
        salary_range: Optional[str] = None,
        job_type: Optional[str] = None,
        work_mode: Optional[str] = None,
        url: Optional[str] = None,
        status: JobStatus = JobStatus.INTERESTED,
    ) -> Job:
        if not title.strip():
            raise BadRequestError("Job title is required")
        if not company.strip():
            raise BadRequestError("Company name is required")

        job = Job(
            title=title.strip(),
            company=company.strip(),
            description=description,
            location=location,
            salary_range=salary_range,
            job_type=job_type,
            work_mode=work_mode,
            url=url,
            status=status,
        )
        job.status_changes.append(
            StatusChange(from_status=None, to_status=status, reason="Job created", changed_at=job.created_at)
        )

        jobs = self.store.load_jobs()
        jobs.append(job)
        self.store.save_jobs(jobs)
        logger.info("Job created: %s (%s at %s)", job.id, job.title, job.company)
        return job

    def create_from_parsed(self, parsed: ParsedJobData, url: Optional[str] = None) -> Job:
        return self.create_job(
            title=parsed.title,
            company=parsed.company,
            description=parsed.job_description,
            location=parsed.location,
            salary_range=parsed.salary_range,
            job_type=parsed.job_type,
            work_mode=parsed.work_mode,
            url=url,
        )

    def get_job(self, job_id: str) -> Job:
        return find_by_id(self.store.load_jobs(), job_id, "Job")

    def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        company: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Job]:
        jobs = self.store.load_jobs()
        if status is not None:
            jobs = [j for j in jobs if j.status == status]
        if company:
            needle = company.lower()
            jobs = [j for j in jobs if needle in j.company.lower()]
        if search:
            needle = search.lower()
            jobs = [
                j for j in jobs
                if any(needle in (field or "").lower() for field in (j.title, j.company, j.description, j.location))
            ]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    def _update(self, job_id: str, change) -> Job:
        jobs = self.store.load_jobs()
        job = find_by_id(jobs, job_id, "Job")
        change(job)
        self.store.save_jobs(jobs)
        return job

    def update_status(self, job_id: str, status: JobStatus, reason: Optional[str] = None) -> Job:
        previous: list[JobStatus] = []

        def apply(job: Job) -> None:
            previous.append(job.status)
            transition_job(job, status, reason)

        job = self._update(job_id, apply)
        logger.info("Job status updated: %s from %s to %s", job.id, previous[0].value, status.value)
        return job

    def add_note(self, job_id: str, note: str) -> Job:
        if not note.strip():
            raise BadRequestError("Note text is required")

        def apply(job: Job) -> None:
            now = datetime.now()
            job.notes += f"[{now.isoformat(timespec='seconds')}]\n{note.strip()}\n\n"
            job.updated_at = now

        job = self._update(job_id, apply)
        logger.info("Note added to job: %s", job.id)
        return job

    def set_analysis(self, job_id: str, analysis: dict, match_score: Optional[float]) -> Job:
        def apply(job: Job) -> None:
            job.ai_analysis = analysis
            if match_score is not None:
                job.match_score = match_score
            job.updated_at = datetime.now()

        return self._update(job_id, apply)

    def delete_job(self, job_id: str) -> Job:
        jobs = self.store.load_jobs()
        job = find_by_id(jobs, job_id, "Job")
        self.store.save_jobs([j for j in jobs if j.id != job.id])
        logger.info("Job deleted: %s", job.id)
        return job

    def stats(self, now: Optional[datetime] = None) -> JobStats:
        now = now or datetime.now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        jobs = self.store.load_jobs()

        by_status: dict[str, int] = {}
        for job in jobs:
            by_status[job.status.value] = by_status.get(job.status.value, 0) + 1

        return JobStats(
            total=len(jobs),
            active=sum(1 for j in jobs if j.status not in TERMINAL_STATUSES),
            by_status=by_status,
            added_this_month=sum(1 for j in jobs if j.created_at >= month_start),
        )

    def timeline(self, job_id: str) -> list[StatusChange]:
        job = self.get_job(job_id)
        return sorted(job.status_changes, key=lambda c: c.changed_at)
