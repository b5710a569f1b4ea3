from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class StreakSchema(BaseModel):
    current: int = 0
    longest: int = 0
    last_solved_date: Optional[date] = None


class BadgeSchema(BaseModel):
    name: str
    description: str
    icon_url: Optional[str] = None
    earned_at: Optional[datetime] = None


class UpdateSummary(BaseModel):
    already_solved: bool
    total_solved: int = 0
    streak: Optional[StreakSchema] = None
    new_badges: List[BadgeSchema] = Field(default_factory=list)

    @property
    def message(self) -> str:
        return "Problem already solved" if self.already_solved else "Progress updated"
