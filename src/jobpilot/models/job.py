"""Job tracking data models."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from .analysis import NonEmptyStr
from .resume import ParsedResumeData

JobType = Literal["FULL_TIME", "PART_TIME", "CONTRACT", "INTERNSHIP", "TEMPORARY"]
WorkMode = Literal["REMOTE", "HYBRID", "ONSITE"]

JOB_TYPES: tuple[str, ...] = ("FULL_TIME", "PART_TIME", "CONTRACT", "INTERNSHIP", "TEMPORARY")
WORK_MODES: tuple[str, ...] = ("REMOTE", "HYBRID", "ONSITE")


def _new_id() -> str:
    return str(uuid.uuid4())


class JobStatus(str, Enum):
    INTERESTED = "INTERESTED"
    APPLIED = "APPLIED"
    INTERVIEW_SCHEDULED = "INTERVIEW_SCHEDULED"
    INTERVIEW_COMPLETED = "INTERVIEW_COMPLETED"
    OFFER_RECEIVED = "OFFER_RECEIVED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


class ParsedJobData(BaseModel):
    company: NonEmptyStr
    title: NonEmptyStr
    job_description: NonEmptyStr
    location: str = "Not specified"
    salary_range: Optional[str] = None
    job_type: JobType = "FULL_TIME"
    work_mode: WorkMode = "ONSITE"


class StatusChange(BaseModel):
    from_status: Optional[JobStatus] = None
    to_status: JobStatus
    reason: Optional[str] = None
    changed_at: datetime = Field(default_factory=datetime.now)


class Job(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    company: str
    description: str = ""
    location: Optional[str] = None
    salary_range: Optional[str] = None
    job_type: Optional[JobType] = None
    work_mode: Optional[WorkMode] = None
    url: Optional[str] = None
    status: JobStatus = JobStatus.INTERESTED
    match_score: Optional[float] = None
    ai_analysis: Optional[dict[str, Any]] = None
    notes: str = ""
    status_changes: list[StatusChange] = []
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class Resume(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    raw_text: str = ""
    parsed: Optional[ParsedResumeData] = None
    created_at: datetime = Field(default_factory=datetime.now)
