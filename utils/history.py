from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict
from datetime import date
from typing import Dict, List

from models.stats import AchievementHistory, DailyAchievement
from models.target import TargetSet
from utils.achievement import DayTotals, TargetSpec, day_is_met, streaks_over
from utils.calendar import get_primary_halaqa, is_active_day, iter_days
from utils.errors import NotFoundError, ValidationError

MAX_HISTORY_DAYS = 90


def validate_date_range(start: date, end: date, max_days: int = MAX_HISTORY_DAYS) -> None:
    if end < start:
        raise ValidationError("end date must not be before start date")
    span = (end - start).days + 1
    if span > max_days:
        raise ValidationError(f"date range spans {span} days; the maximum is {max_days}")


def totals_by_day(conn, student_ids: List[int], start: date, end: date) -> Dict[int, Dict[date, DayTotals]]:
    """{student_id: {day: DayTotals}} for every record in the window."""
    result: Dict[int, Dict[date, DayTotals]] = defaultdict(dict)
    if not student_ids:
        return result
    placeholders = ",".join("?" for _ in student_ids)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT student_id, date, category, COALESCE(SUM(number_lines), 0) AS lines
        FROM progress_records
        WHERE student_id IN ({placeholders}) AND date BETWEEN ? AND ?
        GROUP BY student_id, date, category
        """,
        [*student_ids, start.isoformat(), end.isoformat()],
    )
    for row in cursor.fetchall():
        day = date.fromisoformat(row["date"])
        per_student = result[row["student_id"]]
        per_student[day] = per_student.get(day, DayTotals()).add(row["category"], float(row["lines"]))
    return result


def achievement_history(conn, student_id: int, start: date, end: date) -> AchievementHistory:
    """Recompute achievement and streaks for a window from raw progress.

    Uses the student's current target for every day in the window, and the
    calendar of the student's primary halaqa.
    """
    validate_date_range(start, end)
    cursor = conn.cursor()
    cursor.execute("SELECT 1 FROM students WHERE id = ?", (student_id,))
    if not cursor.fetchone():
        raise NotFoundError(f"Student {student_id} not found")
    cursor.execute(
        """
        SELECT memorization_lines, revision_pages, consolidation_pages
        FROM student_targets
        WHERE student_id = ?
        """,
        (student_id,),
    )
    target_row = cursor.fetchone()
    target = TargetSpec.from_row(target_row) if target_row else None

    primary = get_primary_halaqa(conn, student_id)
    active_days = primary[2] if primary else None
    totals = totals_by_day(conn, [student_id], start, end).get(student_id, {})

    daily: List[DailyAchievement] = []
    active_flags: List[bool] = []
    last_met = None
    for day in iter_days(start, end):
        day_totals = totals.get(day, DayTotals())
        active = is_active_day(day, active_days)
        met = day_is_met(target, day_totals)
        daily.append(
            DailyAchievement(
                date=day,
                is_active_day=active,
                memorization_lines=round(day_totals.memorization_lines, 2),
                revision_pages=round(day_totals.revision_pages, 2),
                consolidation_pages=round(day_totals.consolidation_pages, 2),
                target_met=met,
            )
        )
        if active:
            active_flags.append(met)
            if met:
                last_met = day
    current, longest = streaks_over(active_flags)
    return AchievementHistory(
        student_id=student_id,
        from_date=start,
        to_date=end,
        target=TargetSet(**asdict(target)) if target else None,
        daily_achievements=daily,
        current_streak=current,
        longest_streak=longest,
        last_met_date=last_met,
    )
