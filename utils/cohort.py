from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from config import load_config
from models.stats import (
    AchievementCategory,
    DailyAchievementStats,
    DayAchievementStatus,
    HalaqaCoverage,
    HalaqaTargetStats,
    StreakLeaderboard,
    StudentStreak,
    TargetAdoptionOverview,
    TeacherCoverage,
    WeekSummary,
)
from utils.achievement import DayTotals, TargetSpec, previous_active_day
from utils.calendar import count_active_days, is_active_day, iter_days, parse_active_days
from utils.history import totals_by_day, validate_date_range

ACTIVATION_WINDOW_DAYS = 7
CATEGORIES = ("memorization", "revision", "consolidation")


@dataclass(frozen=True)
class CohortScope:
    """Which students an aggregate covers; no filters means everyone."""

    teacher_id: Optional[int] = None
    halaqa_id: Optional[int] = None
    halaqa_ids: Optional[Tuple[int, ...]] = None

    @property
    def is_restricted(self) -> bool:
        return self.teacher_id is not None or self.halaqa_id is not None or bool(self.halaqa_ids)

    def cache_key(self) -> str:
        halaqat = ",".join(str(h) for h in sorted(self.halaqa_ids or ()))
        return f"t={self.teacher_id}|h={self.halaqa_id}|hs={halaqat}"


@dataclass
class ScopeStudent:
    student_id: int
    name: str
    halaqa_id: Optional[int] = None
    halaqa_name: str = ""
    active_days: Optional[FrozenSet[int]] = None
    halaqat: Dict[int, str] = field(default_factory=dict)
    teacher_ids: Set[int] = field(default_factory=set)


def _percentage(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


def _capped_percentage(achieved: float, target: float) -> float:
    return min(100.0, _percentage(achieved, target))


_LIMITS: Optional[Tuple[int, int]] = None


def leaderboard_limits() -> Tuple[int, int]:
    """(default, max) leaderboard sizes, read from config on first use."""
    global _LIMITS
    if _LIMITS is None:
        leaderboard_cfg = load_config()["leaderboard"]
        _LIMITS = (int(leaderboard_cfg["default_limit"]), max(1, int(leaderboard_cfg["max_limit"])))
    return _LIMITS


def reset_limits() -> None:
    global _LIMITS
    _LIMITS = None


def clamp_limit(limit: Optional[int]) -> int:
    default_limit, max_limit = leaderboard_limits()
    if limit is None:
        limit = default_limit
    return max(1, min(int(limit), max_limit))


def scope_students(conn, scope: CohortScope) -> Dict[int, ScopeStudent]:
    """Students in scope keyed by id; primary halaqa = lowest halaqa id in scope."""
    if scope.is_restricted:
        filters = ["sh.is_active = 1"]
        params: list = []
        if scope.teacher_id is not None:
            filters.append("sh.teacher_id = ?")
            params.append(scope.teacher_id)
        if scope.halaqa_id is not None:
            filters.append("sh.halaqa_id = ?")
            params.append(scope.halaqa_id)
        if scope.halaqa_ids:
            filters.append(f"sh.halaqa_id IN ({','.join('?' for _ in scope.halaqa_ids)})")
            params.extend(scope.halaqa_ids)
        sql = f"""
            SELECT s.id, s.name, sh.halaqa_id, h.name AS halaqa_name, h.active_days, sh.teacher_id
            FROM student_halaqat sh
            JOIN students s ON s.id = sh.student_id
            JOIN halaqat h ON h.id = sh.halaqa_id
            WHERE {' AND '.join(filters)}
            ORDER BY s.id, sh.halaqa_id
        """
    else:
        params = []
        sql = """
            SELECT s.id, s.name, sh.halaqa_id, h.name AS halaqa_name, h.active_days, sh.teacher_id
            FROM students s
            LEFT JOIN student_halaqat sh ON sh.student_id = s.id AND sh.is_active = 1
            LEFT JOIN halaqat h ON h.id = sh.halaqa_id
            ORDER BY s.id, sh.halaqa_id
        """
    cursor = conn.cursor()
    cursor.execute(sql, params)
    students: Dict[int, ScopeStudent] = {}
    for row in cursor.fetchall():
        student = students.get(row["id"])
        if student is None:
            student = ScopeStudent(student_id=row["id"], name=row["name"])
            students[row["id"]] = student
        if row["halaqa_id"] is None:
            continue
        if student.halaqa_id is None:
            student.halaqa_id = row["halaqa_id"]
            student.halaqa_name = row["halaqa_name"]
            student.active_days = parse_active_days(row["active_days"])
        student.halaqat[row["halaqa_id"]] = row["halaqa_name"]
        if row["teacher_id"] is not None:
            student.teacher_ids.add(row["teacher_id"])
    return students


def targets_for(conn, student_ids: Sequence[int]) -> Dict[int, dict]:
    if not student_ids:
        return {}
    ids = list(student_ids)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT student_id, memorization_lines, revision_pages, consolidation_pages,
               current_streak, longest_streak, last_streak_date, created_at
        FROM student_targets
        WHERE student_id IN ({','.join('?' for _ in ids)})
        """,
        ids,
    )
    return {row["student_id"]: dict(row) for row in cursor.fetchall()}


def streak_is_active(last_streak_date: Optional[date], today: date, active_days) -> bool:
    """True while the streak can still be extended: last counted day is today
    or the most recent active day before today."""
    if last_streak_date is None:
        return False
    if last_streak_date >= today:
        return True
    previous = previous_active_day(today, active_days)
    return previous is not None and last_streak_date >= previous


def streak_leaderboard(
    conn,
    scope: CohortScope = CohortScope(),
    limit: Optional[int] = None,
    today: Optional[date] = None,
) -> StreakLeaderboard:
    today = today or date.today()
    limit = clamp_limit(limit)
    students = scope_students(conn, scope)
    targets = targets_for(conn, list(students))

    ranked = []
    for student_id, target in targets.items():
        if int(target["current_streak"]) <= 0:
            continue
        ranked.append((students[student_id], target))
    ranked.sort(
        key=lambda item: (
            -int(item[1]["current_streak"]),
            -int(item[1]["longest_streak"]),
            item[0].name,
        )
    )

    entries = []
    for position, (student, target) in enumerate(ranked[:limit], start=1):
        last = target["last_streak_date"]
        last_date = date.fromisoformat(last) if last else None
        entries.append(
            StudentStreak(
                rank=position,
                student_id=student.student_id,
                student_name=student.name,
                halaqa_id=student.halaqa_id,
                halaqa_name=student.halaqa_name,
                current_streak=int(target["current_streak"]),
                longest_streak=int(target["longest_streak"]),
                is_streak_active=streak_is_active(last_date, today, student.active_days),
                last_streak_date=last_date,
            )
        )

    filtered_by = None
    if scope.halaqa_id is not None:
        cursor = conn.cursor()
        cursor.execute("SELECT name FROM halaqat WHERE id = ?", (scope.halaqa_id,))
        row = cursor.fetchone()
        filtered_by = row["name"] if row else None

    return StreakLeaderboard(
        students=entries,
        total_students_in_scope=len(students),
        students_with_active_streaks=len(ranked),
        filtered_by_halaqa=filtered_by,
    )


def _students_with_recent_progress(conn, student_ids: Sequence[int], start: date, end: date) -> Set[int]:
    if not student_ids:
        return set()
    ids = list(student_ids)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT DISTINCT student_id
        FROM progress_records
        WHERE student_id IN ({','.join('?' for _ in ids)}) AND date BETWEEN ? AND ?
        """,
        [*ids, start.isoformat(), end.isoformat()],
    )
    return {row[0] for row in cursor.fetchall()}


def target_adoption_overview(
    conn,
    scope: CohortScope = CohortScope(),
    include_halaqa_breakdown: bool = False,
    today: Optional[date] = None,
) -> TargetAdoptionOverview:
    today = today or date.today()
    students = scope_students(conn, scope)
    total = len(students)
    if total == 0:
        return TargetAdoptionOverview()
    targets = targets_for(conn, list(students))
    with_target = set(targets)

    week_ago = today - timedelta(days=7)
    existed_week_ago = {
        student_id
        for student_id, target in targets.items()
        if target["created_at"] and date.fromisoformat(target["created_at"][:10]) <= week_ago
    }
    coverage = _percentage(len(with_target), total)
    weekly_change = round(coverage - _percentage(len(existed_week_ago), total), 1)

    halaqa_names: Dict[int, str] = {}
    halaqa_members: Dict[int, Set[int]] = {}
    teacher_members: Dict[int, Set[int]] = {}
    for student in students.values():
        for halaqa_id, name in student.halaqat.items():
            halaqa_names[halaqa_id] = name
            halaqa_members.setdefault(halaqa_id, set()).add(student.student_id)
        for teacher_id in student.teacher_ids:
            teacher_members.setdefault(teacher_id, set()).add(student.student_id)

    halaqat_with_targets = sum(1 for members in halaqa_members.values() if members & with_target)
    teachers_with_targets = sum(1 for members in teacher_members.values() if members & with_target)

    window_start = today - timedelta(days=ACTIVATION_WINDOW_DAYS - 1)
    activated = _students_with_recent_progress(conn, sorted(with_target), window_start, today)

    breakdown: List[HalaqaTargetStats] = []
    if include_halaqa_breakdown:
        for halaqa_id, members in sorted(halaqa_members.items(), key=lambda item: halaqa_names[item[0]]):
            targeted = len(members & with_target)
            breakdown.append(
                HalaqaTargetStats(
                    halaqa_id=halaqa_id,
                    halaqa_name=halaqa_names[halaqa_id],
                    students_with_targets=targeted,
                    total_students=len(members),
                    coverage_percentage=_percentage(targeted, len(members)),
                )
            )

    return TargetAdoptionOverview(
        coverage_percentage=coverage,
        students_with_targets=len(with_target),
        total_students=total,
        weekly_change_percentage=weekly_change,
        halaqa_coverage=HalaqaCoverage(
            halaqat_with_targets=halaqat_with_targets,
            total_halaqat=len(halaqa_members),
        ),
        teacher_coverage=TeacherCoverage(
            teachers_with_targets=teachers_with_targets,
            total_teachers=len(teacher_members),
        ),
        activation_rate=_percentage(len(activated), len(with_target)),
        halaqa_breakdown=breakdown,
    )


def _category_goal(spec: TargetSpec, category: str) -> Optional[int]:
    return {
        "memorization": spec.memorization_lines,
        "revision": spec.revision_pages,
        "consolidation": spec.consolidation_pages,
    }[category]


def _category_amount(totals: DayTotals, category: str) -> float:
    return {
        "memorization": totals.memorization_lines,
        "revision": totals.revision_pages,
        "consolidation": totals.consolidation_pages,
    }[category]


def _empty_ledger() -> Dict[str, List[float]]:
    return {category: [0.0, 0.0] for category in CATEGORIES}


def student_contribution(
    spec: TargetSpec,
    totals: Dict[date, DayTotals],
    days: Sequence[date],
    active_days: Optional[FrozenSet[int]],
):
    """One student's share of a cohort rollup.

    Returns ({category: [achieved, cumulative_target]},
    {day: {category: [achieved, daily_target]}}); categories without a
    target contribute nothing.
    """
    active_count = count_active_days(days[0], days[-1], active_days) if days else 0
    overall = _empty_ledger()
    per_day: Dict[date, Dict[str, List[float]]] = {}
    for day in days:
        day_totals = totals.get(day, DayTotals())
        active = is_active_day(day, active_days)
        ledger = per_day.setdefault(day, _empty_ledger())
        for category in CATEGORIES:
            goal = _category_goal(spec, category)
            if goal is None:
                continue
            amount = _category_amount(day_totals, category)
            overall[category][0] += amount
            if active:
                ledger[category][0] += amount
                ledger[category][1] += goal
    for category in CATEGORIES:
        goal = _category_goal(spec, category)
        if goal is not None:
            overall[category][1] = goal * active_count
    return overall, per_day


def daily_achievement_stats(
    conn,
    scope: CohortScope,
    from_date: date,
    to_date: date,
) -> DailyAchievementStats:
    """Cohort achievement against targets over a date range.

    A student's cumulative target is the daily target times the number of
    days their halaqa meets inside the range, so halaqat with different
    weekly schedules are compared fairly.
    """
    validate_date_range(from_date, to_date)
    students = scope_students(conn, scope)
    targets = targets_for(conn, list(students))
    specs = {
        student_id: TargetSpec.from_row(row)
        for student_id, row in targets.items()
    }
    specs = {student_id: spec for student_id, spec in specs.items() if spec.has_any}
    days = list(iter_days(from_date, to_date))
    totals = totals_by_day(conn, sorted(specs), from_date, to_date)

    overall = _empty_ledger()
    per_day = {day: _empty_ledger() for day in days}
    for student_id, spec in specs.items():
        student_overall, student_days = student_contribution(
            spec, totals.get(student_id, {}), days, students[student_id].active_days
        )
        for category in CATEGORIES:
            overall[category][0] += student_overall[category][0]
            overall[category][1] += student_overall[category][1]
            for day in days:
                per_day[day][category][0] += student_days[day][category][0]
                per_day[day][category][1] += student_days[day][category][1]

    def category_result(category: str, unit: str) -> AchievementCategory:
        achieved, target = overall[category]
        return AchievementCategory(
            achieved=round(achieved, 2),
            target=round(target, 2),
            percentage=_capped_percentage(achieved, target),
            unit=unit,
        )

    statuses = []
    for day in days:
        ledger = per_day[day]
        defined = [category for category in CATEGORIES if ledger[category][1] > 0]
        if not defined:
            statuses.append(DayAchievementStatus(date=day, target_met=False, percentage=0.0))
            continue
        met = all(ledger[category][0] >= ledger[category][1] for category in defined)
        average = sum(
            _capped_percentage(ledger[category][0], ledger[category][1]) for category in defined
        ) / len(defined)
        statuses.append(DayAchievementStatus(date=day, target_met=met, percentage=round(average, 1)))

    total_days = sum(
        1 for day in days if any(per_day[day][category][1] > 0 for category in CATEGORIES)
    )
    return DailyAchievementStats(
        from_date=from_date,
        to_date=to_date,
        total_students=len(students),
        students_with_targets=len(specs),
        memorization=category_result("memorization", "lines"),
        revision=category_result("revision", "pages"),
        consolidation=category_result("consolidation", "pages"),
        week_summary=WeekSummary(
            days=statuses,
            days_target_met=sum(1 for status in statuses if status.target_met),
            total_days=total_days,
        ),
    )
