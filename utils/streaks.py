from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Optional

from utils.achievement import DayTotals, StreakState, TargetSpec, day_is_met, next_streak, streaks_over
from utils.calendar import is_active_day, iter_days
from utils.history import totals_by_day

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 3

# Outcomes of a streak evaluation
NO_TARGET = "no_target"
ALREADY_COUNTED = "already_counted"
INACTIVE_DAY = "inactive_day"
NOT_MET = "not_met"
CONTINUED = "continued"
STARTED = "started"
RECOUNTED = "recounted"


@dataclass(frozen=True)
class StreakUpdate:
    outcome: str
    current_streak: int = 0
    longest_streak: int = 0
    last_streak_date: Optional[date] = None

    @property
    def changed(self) -> bool:
        return self.outcome in (CONTINUED, STARTED, RECOUNTED)


def day_totals(conn, student_id: int, day: date) -> DayTotals:
    """Lines recorded for a student on one day, per category."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT category, COALESCE(SUM(number_lines), 0) AS lines
        FROM progress_records
        WHERE student_id = ? AND date = ?
        GROUP BY category
        """,
        (student_id, day.isoformat()),
    )
    totals = DayTotals()
    for row in cursor.fetchall():
        totals = totals.add(row["category"], float(row["lines"]))
    return totals


def _read_state(conn, student_id: int):
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT memorization_lines, revision_pages, consolidation_pages,
               current_streak, longest_streak, last_streak_date
        FROM student_targets
        WHERE student_id = ?
        """,
        (student_id,),
    )
    row = cursor.fetchone()
    if not row:
        return None, None
    last = row["last_streak_date"]
    state = StreakState(
        current_streak=int(row["current_streak"]),
        longest_streak=int(row["longest_streak"]),
        last_streak_date=date.fromisoformat(last) if last else None,
    )
    return TargetSpec.from_row(row), state


def recount_streak(
    conn,
    student_id: int,
    target: TargetSpec,
    state: StreakState,
    active_days: Optional[FrozenSet[int]],
) -> StreakState:
    """Counters rebuilt from raw progress, up to the stored last streak date.

    Uses the same met-day and run rules as the history report; longest never
    shrinks.
    """
    cursor = conn.cursor()
    cursor.execute("SELECT MIN(date) FROM progress_records WHERE student_id = ?", (student_id,))
    first = cursor.fetchone()[0]
    through = state.last_streak_date
    if first is None or through is None:
        return state
    start = min(date.fromisoformat(first), through)
    totals = totals_by_day(conn, [student_id], start, through).get(student_id, {})
    met_flags = [
        day_is_met(target, totals.get(day, DayTotals()))
        for day in iter_days(start, through)
        if is_active_day(day, active_days)
    ]
    current, longest = streaks_over(met_flags)
    return StreakState(
        current_streak=current,
        longest_streak=max(longest, state.longest_streak, current),
        last_streak_date=through,
    )


def _write_state(conn, student_id: int, read: StreakState, updated: StreakState) -> bool:
    """Compare-and-set against the counters that were read; False if another writer got there first."""
    cursor = conn.execute(
        """
        UPDATE student_targets
        SET current_streak = ?,
            longest_streak = ?,
            last_streak_date = ?,
            updated_at = datetime('now')
        WHERE student_id = ? AND last_streak_date IS ? AND current_streak = ?
        """,
        (
            updated.current_streak,
            updated.longest_streak,
            updated.last_streak_date.isoformat() if updated.last_streak_date else None,
            student_id,
            read.last_streak_date.isoformat() if read.last_streak_date else None,
            read.current_streak,
        ),
    )
    conn.commit()
    return cursor.rowcount == 1


def on_progress_recorded(
    conn,
    student_id: int,
    day: date,
    active_days: Optional[FrozenSet[int]],
) -> StreakUpdate:
    """Re-evaluate a student's streak after progress was recorded for `day`.

    `active_days` is the calendar of the halaqa the progress belongs to
    (None = meets every day). A met day earlier than last_streak_date is a
    back-filled entry: the counters are recounted and the last date is kept.
    The counters are written with a compare-and-set on the values read, so
    two writers racing on the same day cannot both count it.
    """
    for _ in range(MAX_UPDATE_ATTEMPTS):
        target, state = _read_state(conn, student_id)
        if target is None:
            return StreakUpdate(NO_TARGET)
        if state.last_streak_date == day:
            return StreakUpdate(ALREADY_COUNTED, state.current_streak, state.longest_streak, day)
        if not is_active_day(day, active_days):
            return StreakUpdate(INACTIVE_DAY, state.current_streak, state.longest_streak, state.last_streak_date)
        totals = day_totals(conn, student_id, day)
        if not day_is_met(target, totals):
            return StreakUpdate(NOT_MET, state.current_streak, state.longest_streak, state.last_streak_date)

        if state.last_streak_date is not None and day < state.last_streak_date:
            # A late entry for an earlier day: last_streak_date stays put.
            updated = recount_streak(conn, student_id, target, state, active_days)
            outcome = RECOUNTED
        else:
            updated = next_streak(state, day, active_days)
            outcome = CONTINUED if updated.current_streak > 1 else STARTED
        if _write_state(conn, student_id, state, updated):
            logger.debug(
                "Student %s streak %s on %s: current=%d longest=%d",
                student_id,
                outcome,
                day,
                updated.current_streak,
                updated.longest_streak,
            )
            return StreakUpdate(outcome, updated.current_streak, updated.longest_streak, updated.last_streak_date)
        logger.debug("Streak row for student %s changed concurrently; re-reading", student_id)
    target, state = _read_state(conn, student_id)
    logger.warning("Gave up updating streak for student %s on %s after %d attempts", student_id, day, MAX_UPDATE_ATTEMPTS)
    return StreakUpdate(ALREADY_COUNTED, state.current_streak, state.longest_streak, state.last_streak_date)
