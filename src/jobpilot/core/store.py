"""Workspace persistence: JSON documents under .jobpilot/.

Layout:
    .jobpilot/config.yaml
    .jobpilot/jobs.json
    .jobpilot/resumes.json
    .jobpilot/analyses/<kind>-<id>.json
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from .. import __version__
from ..models.job import Job, Resume
from .config import WORKSPACE_DIR
from .exceptions import StoreError

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = (
    "# jobpilot workspace configuration\n"
    "# Values here override the built-in defaults; CLI flags override both.\n"
    "\n"
    f'jobpilot_version: "{__version__}"\n'
    "\n"
    "ai:\n"
    "  provider: anthropic\n"
    "  api_key_env: ANTHROPIC_API_KEY\n"
    "\n"
    "# agents:\n"
    "#   resume_tailor:\n"
    "#     temperature: 0.4\n"
    "#     max_retries: 3\n"
)


class WorkspaceStore:
    """Reads and writes workspace documents. Not safe for concurrent writers."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.base = self.root / WORKSPACE_DIR

    @property
    def jobs_path(self) -> Path:
        return self.base / "jobs.json"

    @property
    def resumes_path(self) -> Path:
        return self.base / "resumes.json"

    @property
    def analyses_dir(self) -> Path:
        return self.base / "analyses"

    def exists(self) -> bool:
        return self.base.is_dir()

    def initialize(self) -> bool:
        """Create the workspace layout. Returns False if it already existed."""
        created = not self.base.exists()
        self.analyses_dir.mkdir(parents=True, exist_ok=True)

        config_path = self.base / "config.yaml"
        if not config_path.exists():
            config_path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
        for path in (self.jobs_path, self.resumes_path):
            if not path.exists():
                self._write(path, [])
        return created

    # -- documents ----------------------------------------------------------

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt workspace file {path}: {e}") from e

    def _write(self, path: Path, data: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def _load_list(self, path: Path, model: type[BaseModel]) -> list:
        data = self._read(path) or []
        if not isinstance(data, list):
            raise StoreError(f"Corrupt workspace file {path}: expected a list")
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as e:
            raise StoreError(f"Corrupt workspace file {path}: {e.errors()[0]['msg']}") from e

    def _save_list(self, path: Path, items: list[BaseModel]) -> Path:
        return self._write(path, [item.model_dump(mode="json") for item in items])

    # -- jobs / resumes -----------------------------------------------------

    def load_jobs(self) -> list[Job]:
        return self._load_list(self.jobs_path, Job)

    def save_jobs(self, jobs: list[Job]) -> Path:
        logger.debug("Saving %d jobs to %s", len(jobs), self.jobs_path)
        return self._save_list(self.jobs_path, jobs)

    def load_resumes(self) -> list[Resume]:
        return self._load_list(self.resumes_path, Resume)

    def save_resumes(self, resumes: list[Resume]) -> Path:
        logger.debug("Saving %d resumes to %s", len(resumes), self.resumes_path)
        return self._save_list(self.resumes_path, resumes)

    # -- analyses -----------------------------------------------------------

    def analysis_path(self, kind: str, ref_id: str) -> Path:
        return self.analyses_dir / f"{kind}-{ref_id}.json"

    def save_analysis(self, kind: str, ref_id: str, payload: dict) -> Path:
        path = self._write(self.analysis_path(kind, ref_id), payload)
        logger.info("Saved %s analysis to %s", kind, path)
        return path

    def load_analysis(self, kind: str, ref_id: str) -> Optional[dict]:
        return self._read(self.analysis_path(kind, ref_id))
