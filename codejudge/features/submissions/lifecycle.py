from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from codejudge.common.errors import NotFoundError, SubmissionAlreadyFinalized
from codejudge.features.judge0.languages import Language
from .repository import SubmissionsRepository, submissions_repository
from .schemas import NotesSchema, SubmissionRecord, SubmissionStatus, Verdict

logger = logging.getLogger(__name__)


class SubmissionLifecycle:
    """Sole writer of a submission's status and metrics.

    ``pending`` is written once at creation and replaced once by a terminal
    status. The write is conditional on the row still being pending, so a
    repeated finalize with the same verdict is a no-op and a conflicting one
    is rejected.
    """

    def __init__(self, repository: Optional[SubmissionsRepository] = None):
        self.repo = repository or submissions_repository

    async def create_pending(
        self,
        *,
        user_id: str,
        problem_id: str,
        code: str,
        language: Language,
        total: int,
        notes: Optional[NotesSchema] = None,
    ) -> SubmissionRecord:
        notes = notes or NotesSchema()
        record = await self.repo.create({
            "user_id": user_id,
            "problem_id": problem_id,
            "code": code,
            "language": language.value,
            "status": SubmissionStatus.pending.value,
            "tests_total": total,
            "notes_text": notes.text,
            "notes_time_taken": notes.time_taken,
        })
        logger.info("submission.created id=%s user=%s problem=%s", record.id, user_id, problem_id)
        return record

    async def finalize(self, submission: SubmissionRecord, verdict: Verdict) -> SubmissionRecord:
        if not verdict.status.is_terminal:
            raise ValueError("finalize requires a terminal verdict")

        fields = {
            "status": verdict.status.value,
            "error_message": verdict.error_message or "",
            "tests_passed": verdict.passed_count,
            "tests_total": verdict.total_count,
            "runtime_ms": verdict.runtime_ms,
            "runtime_seconds": verdict.runtime_seconds,
            "memory_kb": verdict.memory_kb,
            "finalized_at": datetime.now(timezone.utc).isoformat(),
        }
        updated = await self.repo.finalize_pending(submission.id, fields)
        if updated is not None:
            logger.info("submission.finalized id=%s status=%s", updated.id, updated.status.value)
            return updated

        current = await self.repo.get(submission.id)
        if current is None:
            raise NotFoundError("Submission not found")
        if current.status is verdict.status:
            logger.info("submission.finalize_repeated id=%s status=%s", current.id, current.status.value)
            return current
        logger.warning(
            "submission.finalize_conflict id=%s stored=%s attempted=%s",
            current.id, current.status.value, verdict.status.value,
        )
        raise SubmissionAlreadyFinalized(
            f"Submission already finalized as {current.status.value}",
            status=current.status.value,
        )


submission_lifecycle = SubmissionLifecycle()
