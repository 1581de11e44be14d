"""Job status transitions.

Every status can move to every other status so the board supports free-form
drag and drop. Moving a job to the status it already has is rejected.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..models.job import Job, JobStatus, StatusChange
from .exceptions import BadRequestError

STATUS_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    status: frozenset(other for other in JobStatus if other is not status)
    for status in JobStatus
}

TERMINAL_STATUSES = frozenset({JobStatus.ACCEPTED, JobStatus.REJECTED, JobStatus.WITHDRAWN})


def validate_status_transition(current: JobStatus, requested: JobStatus) -> None:
    """Raise ``BadRequestError`` unless ``current -> requested`` is allowed."""
    if current == requested:
        raise BadRequestError("Job is already in this status")

    allowed = STATUS_TRANSITIONS.get(current, frozenset())
    if requested not in allowed:
        valid = ", ".join(sorted(s.value for s in allowed)) or "none"
        raise BadRequestError(
            f"Invalid status transition from {current.value} to {requested.value}. "
            f"Valid transitions: {valid}"
        )


def transition_job(job: Job, requested: JobStatus, reason: Optional[str] = None) -> StatusChange:
    """Move ``job`` to ``requested`` and record exactly one history entry."""
    validate_status_transition(job.status, requested)

    now = datetime.now()
    change = StatusChange(
        from_status=job.status,
        to_status=requested,
        reason=reason,
        changed_at=now,
    )
    job.status_changes.append(change)
    job.status = requested
    job.updated_at = now
    return change
