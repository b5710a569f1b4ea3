from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional

from codejudge.common.errors import GradingError
from .badges import ProgressCounters, evaluate_badges
from .repository import ProgressRepository, progress_repository
from .schemas import StreakSchema, UpdateSummary

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_streak(previous: StreakSchema, today: date) -> StreakSchema:
    """Streak after a qualifying solve on ``today``.

    Same day keeps the count, the next day extends it, any gap resets to 1.
    """
    current = 1
    if previous.last_solved_date is not None:
        days = (today - previous.last_solved_date).days
        if days == 0:
            current = previous.current
        elif days == 1:
            current = previous.current + 1
    return StreakSchema(
        current=current,
        longest=max(previous.longest, current),
        last_solved_date=today,
    )


class ProgressService:
    def __init__(
        self,
        repository: Optional[ProgressRepository] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repo = repository or progress_repository
        self.clock = clock

    async def on_accepted(self, user_id: str, problem_id: str, difficulty: Optional[str]) -> UpdateSummary:
        """Record a first acceptance of ``problem_id`` by ``user_id``.

        The solved-set insert is the guard: when the pair already exists
        nothing else is touched. If a later step fails, the streak and the
        solved entry are put back so the whole update can be retried.
        """
        now = self.clock()
        claimed = await self.repo.claim_solved(user_id, problem_id, difficulty, now)
        if not claimed:
            logger.info("progress.already_solved user=%s problem=%s", user_id, problem_id)
            return UpdateSummary(already_solved=True)

        written_over: Optional[StreakSchema] = None
        try:
            previous = await self.repo.get_streak(user_id)
            streak = next_streak(previous, now.date())
            if streak != previous:
                await self.repo.save_streak(user_id, streak)
                written_over = previous

            total = await self.repo.count_solved(user_id)
            owned = await self.repo.badge_names(user_id)
            candidates = evaluate_badges(ProgressCounters(total_solved=total, current_streak=streak.current), owned)
            new_badges = await self.repo.add_badges(user_id, candidates, now)
        except GradingError:
            await self._undo(user_id, problem_id, written_over)
            raise

        logger.info(
            "progress.solved user=%s problem=%s difficulty=%s total=%d streak=%d badges=%s",
            user_id, problem_id, difficulty, total, streak.current, [b.name for b in new_badges],
        )
        return UpdateSummary(
            already_solved=False,
            total_solved=total,
            streak=streak,
            new_badges=new_badges,
        )

    async def _undo(self, user_id: str, problem_id: str, previous: Optional[StreakSchema]) -> None:
        # The caller re-raises the original failure; undo errors are only logged
        try:
            if previous is not None:
                await self.repo.save_streak(user_id, previous)
            await self.repo.release_solved(user_id, problem_id)
        except GradingError:
            logger.exception("progress.undo_failed user=%s problem=%s", user_id, problem_id)
        else:
            logger.warning("progress.update_undone user=%s problem=%s", user_id, problem_id)


progress_service = ProgressService()
