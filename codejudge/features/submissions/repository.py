from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from codejudge.common.errors import PersistenceError
from codejudge.db.supabase import get_supabase
from codejudge.features.submissions.schemas import NotesSchema, SubmissionRecord, SubmissionStatus

logger = logging.getLogger("submissions.repository")


def _to_record(row: Dict[str, Any]) -> SubmissionRecord:
    return SubmissionRecord(
        id=str(row.get("id")),
        user_id=str(row.get("user_id")),
        problem_id=str(row.get("problem_id")),
        code=row.get("code") or "",
        language=row.get("language"),
        status=row.get("status") or SubmissionStatus.pending.value,
        runtime_ms=int(row.get("runtime_ms") or 0),
        runtime_seconds=float(row.get("runtime_seconds") or 0),
        memory_kb=int(row.get("memory_kb") or 0),
        tests_passed=int(row.get("tests_passed") or 0),
        tests_total=int(row.get("tests_total") or 0),
        error_message=row.get("error_message") or "",
        notes=NotesSchema(
            text=row.get("notes_text") or "",
            time_taken=float(row.get("notes_time_taken") or 0),
        ),
        created_at=row.get("created_at"),
        finalized_at=row.get("finalized_at"),
    )


class SubmissionsRepository:
    """Data access for the submissions table."""

    _TABLE = "submissions"

    async def _execute(self, query, op: str):
        try:
            return await query.execute()
        except Exception as exc:
            logger.exception("supabase_%s_failed", op)
            raise PersistenceError(f"Submission store failure during {op}") from exc

    async def create(self, row: Dict[str, Any]) -> SubmissionRecord:
        client = await get_supabase()
        resp = await self._execute(client.table(self._TABLE).insert(row), op="submissions.insert")
        rows = resp.data or []
        if not rows:
            raise PersistenceError("Submission insert returned no row")
        return _to_record(rows[0])

    async def get(self, submission_id: str) -> Optional[SubmissionRecord]:
        client = await get_supabase()
        query = client.table(self._TABLE).select("*").eq("id", submission_id).limit(1)
        resp = await self._execute(query, op="submissions.get")
        rows = resp.data or []
        return _to_record(rows[0]) if rows else None

    async def finalize_pending(self, submission_id: str, fields: Dict[str, Any]) -> Optional[SubmissionRecord]:
        """Conditional update: only a row still in ``pending`` is written."""
        client = await get_supabase()
        query = (
            client.table(self._TABLE)
            .update(fields)
            .eq("id", submission_id)
            .eq("status", SubmissionStatus.pending.value)
        )
        resp = await self._execute(query, op="submissions.finalize")
        rows = resp.data or []
        return _to_record(rows[0]) if rows else None

    async def list_for_user_problem(self, user_id: str, problem_id: str) -> List[SubmissionRecord]:
        client = await get_supabase()
        query = (
            client.table(self._TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("problem_id", problem_id)
            .order("created_at", desc=True)
        )
        resp = await self._execute(query, op="submissions.list")
        return [_to_record(row) for row in (resp.data or [])]

    async def update_notes(self, submission_id: str, fields: Dict[str, Any]) -> Optional[SubmissionRecord]:
        client = await get_supabase()
        query = client.table(self._TABLE).update(fields).eq("id", submission_id)
        resp = await self._execute(query, op="submissions.notes")
        rows = resp.data or []
        return _to_record(rows[0]) if rows else None


submissions_repository = SubmissionsRepository()

__all__ = ["submissions_repository", "SubmissionsRepository"]
