"""Daily achievement rules shared by the streak engine and history reports.

Both the write-time streak update and the read-time recomputation call into
this module, so "was the day met" and "does the day extend the streak" have a
single definition.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence, Tuple

from utils.calendar import resolve_active_days, weekday_index

LINES_PER_PAGE = 15
STREAK_LOOKBACK_DAYS = 7


@dataclass(frozen=True)
class TargetSpec:
    memorization_lines: Optional[int] = None
    revision_pages: Optional[int] = None
    consolidation_pages: Optional[int] = None

    @property
    def has_any(self) -> bool:
        return any(
            value is not None
            for value in (self.memorization_lines, self.revision_pages, self.consolidation_pages)
        )

    @classmethod
    def from_row(cls, row) -> "TargetSpec":
        return cls(
            memorization_lines=row["memorization_lines"],
            revision_pages=row["revision_pages"],
            consolidation_pages=row["consolidation_pages"],
        )


@dataclass(frozen=True)
class DayTotals:
    memorization_lines: float = 0.0
    revision_lines: float = 0.0
    consolidation_lines: float = 0.0

    @property
    def revision_pages(self) -> float:
        return lines_to_pages(self.revision_lines)

    @property
    def consolidation_pages(self) -> float:
        return lines_to_pages(self.consolidation_lines)

    def add(self, category: str, lines: float) -> "DayTotals":
        if category == "memorization":
            return DayTotals(self.memorization_lines + lines, self.revision_lines, self.consolidation_lines)
        if category == "revision":
            return DayTotals(self.memorization_lines, self.revision_lines + lines, self.consolidation_lines)
        if category == "consolidation":
            return DayTotals(self.memorization_lines, self.revision_lines, self.consolidation_lines + lines)
        return self


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_streak_date: Optional[date] = None


def lines_to_pages(lines: float) -> float:
    return lines / LINES_PER_PAGE


def day_is_met(target: Optional[TargetSpec], totals: DayTotals) -> bool:
    """Every defined target reached, and at least one target defined."""
    if target is None or not target.has_any:
        return False
    checks = (
        (target.memorization_lines, totals.memorization_lines),
        (target.revision_pages, totals.revision_pages),
        (target.consolidation_pages, totals.consolidation_pages),
    )
    return all(achieved >= goal for goal, achieved in checks if goal is not None)


def previous_active_day(
    day: date,
    active_days: Optional[Iterable[int]],
    lookback: int = STREAK_LOOKBACK_DAYS,
) -> Optional[date]:
    days = resolve_active_days(active_days)
    for offset in range(1, lookback + 1):
        candidate = day - timedelta(days=offset)
        if weekday_index(candidate) in days:
            return candidate
    return None


def continues_streak(
    day: date,
    last_streak_date: Optional[date],
    active_days: Optional[Iterable[int]],
) -> bool:
    if last_streak_date is None:
        return False
    return previous_active_day(day, active_days) == last_streak_date


def next_streak(state: StreakState, day: date, active_days: Optional[Iterable[int]]) -> StreakState:
    """Counters after `day` was met."""
    if continues_streak(day, state.last_streak_date, active_days):
        current = state.current_streak + 1
    else:
        current = 1
    return StreakState(
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        last_streak_date=day,
    )


def streaks_over(met_flags: Sequence[bool]) -> Tuple[int, int]:
    """(current, longest) over consecutive active days, oldest first.

    Current counts back from the most recent met day; trailing unmet days and
    unmet days before the first met day do not reset it.
    """
    longest = 0
    run = 0
    for met in met_flags:
        run = run + 1 if met else 0
        longest = max(longest, run)
    current = 0
    index = len(met_flags) - 1
    while index >= 0 and not met_flags[index]:
        index -= 1
    while index >= 0 and met_flags[index]:
        current += 1
        index -= 1
    return current, longest
