from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List

from .schemas import BadgeSchema


@dataclass(frozen=True)
class ProgressCounters:
    total_solved: int
    current_streak: int


@dataclass(frozen=True)
class BadgeRule:
    name: str
    description: str
    icon_url: str
    predicate: Callable[[ProgressCounters], bool]


def _solved(n: int) -> Callable[[ProgressCounters], bool]:
    return lambda c: c.total_solved == n


def _streak(n: int) -> Callable[[ProgressCounters], bool]:
    return lambda c: c.current_streak == n


_ICON_BASE = "https://ik.imagekit.io/tvz1mupab"

# Solved-count rules first, then streak rules
BADGE_RULES: tuple = (
    BadgeRule("First Solve", "Solved your first problem!", f"{_ICON_BASE}/firstSolve.png", _solved(1)),
    BadgeRule("Problem Solver", "Solved 10 problems", f"{_ICON_BASE}/problemSolver.png", _solved(10)),
    BadgeRule("Coding Enthusiast", "Solved 50 problems", f"{_ICON_BASE}/codingEnthusiast.png", _solved(50)),
    BadgeRule("Century Club", "Solved 100 problems", f"{_ICON_BASE}/centuryClub.png", _solved(100)),
    BadgeRule("Week Warrior", "7-day solving streak", f"{_ICON_BASE}/weeklyWarrior.png", _streak(7)),
    BadgeRule("Monthly Master", "30-day solving streak", f"{_ICON_BASE}/monthlyMaster.png", _streak(30)),
    BadgeRule("Yearly Champion", "365-day solving streak", f"{_ICON_BASE}/yearlyChampion.png", _streak(365)),
)


def evaluate_badges(
    counters: ProgressCounters,
    owned_names: Iterable[str],
    rules: Iterable[BadgeRule] = BADGE_RULES,
) -> List[BadgeSchema]:
    owned = set(owned_names)
    awarded: List[BadgeSchema] = []
    for rule in rules:
        if rule.name in owned or not rule.predicate(counters):
            continue
        awarded.append(BadgeSchema(name=rule.name, description=rule.description, icon_url=rule.icon_url))
        owned.add(rule.name)
    return awarded
