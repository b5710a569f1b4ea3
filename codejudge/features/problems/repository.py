from __future__ import annotations

import logging
from typing import Optional

from codejudge.common.errors import PersistenceError
from codejudge.db.supabase import get_supabase
from codejudge.features.problems.schemas import ProblemSchema

logger = logging.getLogger("problems.repository")


class ProblemsRepository:
    """Read-only access to the problem catalogue."""

    _TABLE = "problems"
    _COLUMNS = "id,title,difficulty,is_active,is_premium,visible_test_cases,hidden_test_cases,start_code"

    async def get_problem(self, problem_id: str) -> Optional[ProblemSchema]:
        client = await get_supabase()
        try:
            resp = await (
                client.table(self._TABLE)
                .select(self._COLUMNS)
                .eq("id", problem_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            logger.exception("problems.fetch_failed id=%s", problem_id)
            raise PersistenceError("Failed to load problem") from exc
        rows = resp.data or []
        if not rows:
            return None
        row = dict(rows[0])
        row["id"] = str(row.get("id"))
        for key in ("visible_test_cases", "hidden_test_cases", "start_code"):
            row[key] = row.get(key) or []
        return ProblemSchema(**row)


problems_repository = ProblemsRepository()

__all__ = ["problems_repository", "ProblemsRepository"]
