"""Resume storage."""

from __future__ import annotations

import logging
from typing import Optional

from ..core.exceptions import BadRequestError
from ..core.store import WorkspaceStore
from ..models.job import Resume
from ..models.resume import ParsedResumeData
from .jobs import find_by_id

logger = logging.getLogger(__name__)


class ResumeService:
    def __init__(self, store: WorkspaceStore):
        self.store = store

    def add_resume(self, title: str, raw_text: str, parsed: Optional[ParsedResumeData] = None) -> Resume:
        if not title.strip():
            raise BadRequestError("Resume title is required")
        if not raw_text.strip() and parsed is None:
            raise BadRequestError("Resume text is empty")

        resume = Resume(title=title.strip(), raw_text=raw_text, parsed=parsed)
        resumes = self.store.load_resumes()
        resumes.append(resume)
        self.store.save_resumes(resumes)
        logger.info("Resume added: %s (%s, parsed=%s)", resume.id, resume.title, parsed is not None)
        return resume

    def get_resume(self, resume_id: str) -> Resume:
        return find_by_id(self.store.load_resumes(), resume_id, "Resume")

    def list_resumes(self) -> list[Resume]:
        return sorted(self.store.load_resumes(), key=lambda r: r.created_at, reverse=True)

    def set_parsed(self, resume_id: str, parsed: ParsedResumeData) -> Resume:
        resumes = self.store.load_resumes()
        resume = find_by_id(resumes, resume_id, "Resume")
        resume.parsed = parsed
        self.store.save_resumes(resumes)
        return resume

    def require_parsed(self, resume_id: str) -> Resume:
        """The resume, which must already have structured data."""
        resume = self.get_resume(resume_id)
        if resume.parsed is None:
            raise BadRequestError(f"Resume {resume.id} has not been parsed yet")
        return resume
