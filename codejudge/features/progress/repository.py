from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, List, Optional, Set

from codejudge.common.errors import NotFoundError, PersistenceError
from codejudge.db.supabase import get_supabase
from .schemas import BadgeSchema, StreakSchema

logger = logging.getLogger("progress.repository")


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


class ProgressRepository:
    """Solved set, streak columns and badges of a user profile."""

    async def _execute(self, query, op: str):
        try:
            return await query.execute()
        except Exception as exc:
            logger.exception("supabase_%s_failed", op)
            raise PersistenceError(f"Progress store failure during {op}") from exc

    async def claim_solved(self, user_id: str, problem_id: str, difficulty: Optional[str], solved_at: datetime) -> bool:
        """Add (user, problem) to the solved set if absent. True when this call inserted it."""
        client = await get_supabase()
        query = client.table("solved_problems").upsert(
            {
                "user_id": user_id,
                "problem_id": problem_id,
                "difficulty": difficulty,
                "solved_at": solved_at.isoformat(),
            },
            on_conflict="user_id,problem_id",
            ignore_duplicates=True,
        )
        resp = await self._execute(query, op="solved_problems.upsert")
        return bool(resp.data)

    async def release_solved(self, user_id: str, problem_id: str) -> None:
        """Undo a claim whose follow-up updates failed, so a retry starts from scratch."""
        client = await get_supabase()
        query = client.table("solved_problems").delete().eq("user_id", user_id).eq("problem_id", problem_id)
        await self._execute(query, op="solved_problems.delete")

    async def count_solved(self, user_id: str) -> int:
        client = await get_supabase()
        query = client.table("solved_problems").select("problem_id", count="exact").eq("user_id", user_id)
        resp = await self._execute(query, op="solved_problems.count")
        count = getattr(resp, "count", None)
        return int(count) if count is not None else len(resp.data or [])

    async def get_streak(self, user_id: str) -> StreakSchema:
        client = await get_supabase()
        query = (
            client.table("profiles")
            .select("streak_current,streak_longest,streak_last_solved_date")
            .eq("id", user_id)
            .limit(1)
        )
        resp = await self._execute(query, op="profiles.streak")
        rows = resp.data or []
        if not rows:
            raise NotFoundError("User not found")
        row = rows[0]
        return StreakSchema(
            current=int(row.get("streak_current") or 0),
            longest=int(row.get("streak_longest") or 0),
            last_solved_date=_parse_date(row.get("streak_last_solved_date")),
        )

    async def save_streak(self, user_id: str, streak: StreakSchema) -> None:
        client = await get_supabase()
        query = client.table("profiles").update({
            "streak_current": streak.current,
            "streak_longest": streak.longest,
            "streak_last_solved_date": streak.last_solved_date.isoformat() if streak.last_solved_date else None,
        }).eq("id", user_id)
        await self._execute(query, op="profiles.streak_update")

    async def badge_names(self, user_id: str) -> Set[str]:
        client = await get_supabase()
        query = client.table("user_badges").select("name").eq("user_id", user_id)
        resp = await self._execute(query, op="user_badges.list")
        return {row.get("name") for row in (resp.data or []) if row.get("name")}

    async def add_badges(self, user_id: str, badges: List[BadgeSchema], earned_at: datetime) -> List[BadgeSchema]:
        """Insert badges, skipping any the user already holds. Returns those actually inserted."""
        if not badges:
            return []
        client = await get_supabase()
        rows = [
            {
                "user_id": user_id,
                "name": b.name,
                "description": b.description,
                "icon_url": b.icon_url,
                "earned_at": earned_at.isoformat(),
            }
            for b in badges
        ]
        query = client.table("user_badges").upsert(rows, on_conflict="user_id,name", ignore_duplicates=True)
        resp = await self._execute(query, op="user_badges.upsert")
        inserted = {row.get("name") for row in (resp.data or [])}
        return [b.model_copy(update={"earned_at": earned_at}) for b in badges if b.name in inserted]


progress_repository = ProgressRepository()

__all__ = ["progress_repository", "ProgressRepository"]
