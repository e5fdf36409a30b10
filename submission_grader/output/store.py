"""
Result persistence.

The grading engine only hands outcomes over; storing them belongs to a
collaborator behind ResultStore. JsonResultStore keeps one JSON document
per submission, and AuditTrail keeps one per grading run.
"""

import json
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from loguru import logger

from submission_grader.models import GradingAudit, GradingOutcome


class ResultStore(Protocol):
    """Persists grading outcomes by submission id."""

    def save(self, submission_id: str, outcome: GradingOutcome) -> None: ...

    def load(self, submission_id: str) -> GradingOutcome | None: ...


class JsonResultStore:
    """
    Stores each submission's outcome as ``<directory>/<submission_id>.json``.

    Ids are percent-encoded into file names, so distinct ids never share a
    file and no id can name a path outside the directory.
    """

    def __init__(self, directory: Path):
        self._directory = directory
        self._directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, submission_id: str) -> Path:
        return self._directory / f"{quote(submission_id, safe='')}.json"

    def save(self, submission_id: str, outcome: GradingOutcome) -> None:
        path = self.path_for(submission_id)
        path.write_text(
            outcome.model_dump_json(by_alias=True, indent=2),
            encoding="utf-8",
        )
        logger.info("Outcome stored", submission_id=submission_id, path=str(path))

    def load(self, submission_id: str) -> GradingOutcome | None:
        path = self.path_for(submission_id)
        if not path.exists():
            return None
        return GradingOutcome.model_validate_json(path.read_text(encoding="utf-8"))


class AuditTrail:
    """Writes audit records to a directory, one JSON file per record."""

    def __init__(self, directory: Path):
        self._directory = directory
        self._directory.mkdir(parents=True, exist_ok=True)

    def save(self, audit: GradingAudit) -> Path:
        """
        Persist an audit record.

        Returns:
            Path of the written file.
        """
        path = self._directory / f"audit_{audit.audit_id}.json"
        path.write_text(
            json.dumps(audit.model_dump(mode="json", by_alias=True), indent=2),
            encoding="utf-8",
        )
        return path

    def find(self, submission_id: str) -> list[GradingAudit]:
        """Return every stored audit for a submission, oldest first."""
        audits = [
            GradingAudit.model_validate_json(p.read_text(encoding="utf-8"))
            for p in self._directory.glob("audit_*.json")
        ]
        return sorted(
            (a for a in audits if a.submission_id == submission_id),
            key=lambda a: a.timestamp,
        )
