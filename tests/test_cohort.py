from datetime import date, timedelta

import pytest

from models.progress import ProgressCreate
from models.student import HalaqaCreate, StudentCreate
from models.target import TargetSet
from utils import cohort as cohort_module
from utils.cohort import (
    CohortScope,
    clamp_limit,
    daily_achievement_stats,
    streak_is_active,
    streak_leaderboard,
    target_adoption_overview,
)
from utils.errors import ValidationError
from utils.progress import create_progress_record
from utils.students import create_halaqa, create_student, create_teacher, enroll_student
from utils.targets import set_target

SUNDAY = date(2026, 10, 18)
SUN_MON_WED_THU = frozenset({0, 1, 3, 4})


def _student(conn, name, halaqa_id, teacher_id=None, target=None):
    student = create_student(conn, StudentCreate(name=name))
    enroll_student(conn, student.id, halaqa_id, teacher_id)
    if target is not None:
        set_target(conn, student.id, target)
    return student.id


def _record(conn, student_id, halaqa_id, day, to_verse=12, category="memorization"):
    create_progress_record(
        conn,
        ProgressCreate(
            student_id=student_id,
            halaqa_id=halaqa_id,
            date=day,
            category=category,
            chapter_name="البقرة",
            from_verse=3,
            to_verse=to_verse,
        ),
    )


def _set_streak(conn, student_id, current, longest, last):
    conn.execute(
        """
        UPDATE student_targets
        SET current_streak = ?, longest_streak = ?, last_streak_date = ?
        WHERE student_id = ?
        """,
        (current, longest, last.isoformat() if last else None, student_id),
    )
    conn.commit()


@pytest.fixture
def cohort(conn):
    teacher_a = create_teacher(conn, "Ustadh Ahmad")
    teacher_b = create_teacher(conn, "Ustadh Khalid")
    weekday = create_halaqa(conn, HalaqaCreate(name="Al-Fajr", active_days=[0, 1, 3, 4]))
    daily = create_halaqa(conn, HalaqaCreate(name="Al-Asr"))
    target = TargetSet(memorization_lines=10)
    ids = {
        "amina": _student(conn, "Amina", weekday.id, teacher_a, target),
        "bilal": _student(conn, "Bilal", weekday.id, teacher_a, target),
        "dawud": _student(conn, "Dawud", weekday.id, teacher_a),
        "hafsa": _student(conn, "Hafsa", daily.id, teacher_b, target),
        "zaid": _student(conn, "Zaid", daily.id, teacher_b),
    }
    return {"ids": ids, "weekday": weekday.id, "daily": daily.id, "teacher_a": teacher_a, "teacher_b": teacher_b}


def test_leaderboard_orders_and_excludes_zero_streaks(conn, cohort):
    ids = cohort["ids"]
    _set_streak(conn, ids["amina"], 3, 5, SUNDAY)
    _set_streak(conn, ids["bilal"], 3, 7, SUNDAY - timedelta(days=10))
    _set_streak(conn, ids["hafsa"], 6, 6, SUNDAY)

    board = streak_leaderboard(conn, CohortScope(), limit=10, today=SUNDAY)

    assert [entry.student_name for entry in board.students] == ["Hafsa", "Bilal", "Amina"]
    assert [entry.rank for entry in board.students] == [1, 2, 3]
    assert board.total_students_in_scope == 5
    assert board.students_with_active_streaks == 3
    assert board.filtered_by_halaqa is None
    by_name = {entry.student_name: entry for entry in board.students}
    assert by_name["Amina"].is_streak_active
    assert not by_name["Bilal"].is_streak_active
    assert by_name["Hafsa"].halaqa_name == "Al-Asr"


def test_leaderboard_ties_break_on_name(conn, cohort):
    ids = cohort["ids"]
    _set_streak(conn, ids["bilal"], 2, 2, SUNDAY)
    _set_streak(conn, ids["amina"], 2, 2, SUNDAY)
    board = streak_leaderboard(conn, CohortScope(), limit=1, today=SUNDAY)
    assert [entry.student_name for entry in board.students] == ["Amina"]
    assert board.students_with_active_streaks == 2


def test_leaderboard_scoped_to_halaqa(conn, cohort):
    ids = cohort["ids"]
    _set_streak(conn, ids["amina"], 1, 1, SUNDAY)
    _set_streak(conn, ids["hafsa"], 4, 4, SUNDAY)
    board = streak_leaderboard(conn, CohortScope(halaqa_id=cohort["weekday"]), today=SUNDAY)
    assert [entry.student_name for entry in board.students] == ["Amina"]
    assert board.total_students_in_scope == 3
    assert board.filtered_by_halaqa == "Al-Fajr"


def test_streak_active_tolerates_off_days():
    thursday = date(2026, 10, 22)
    assert streak_is_active(thursday, date(2026, 10, 24), SUN_MON_WED_THU)
    assert streak_is_active(thursday, date(2026, 10, 25), SUN_MON_WED_THU)
    assert not streak_is_active(thursday, date(2026, 10, 26), SUN_MON_WED_THU)
    assert not streak_is_active(None, thursday, None)


def test_limit_is_clamped(config_dir):
    assert clamp_limit(None) == 10
    assert clamp_limit(0) == 1
    assert clamp_limit(500) == 50


def test_limits_are_read_from_config_once(config_dir, monkeypatch):
    loads = []
    real_load_config = cohort_module.load_config

    def counting_load_config():
        loads.append(1)
        return real_load_config()

    monkeypatch.setattr(cohort_module, "load_config", counting_load_config)
    for requested in (None, 5, 500, None):
        clamp_limit(requested)
    assert len(loads) == 1
    cohort_module.reset_limits()
    assert clamp_limit(None) == 10
    assert len(loads) == 2


def test_adoption_on_empty_scope(conn):
    overview = target_adoption_overview(conn, CohortScope(halaqa_id=12345))
    assert overview.total_students == 0
    assert overview.coverage_percentage == 0.0
    assert overview.activation_rate == 0.0


def test_adoption_overview(conn, cohort):
    ids = cohort["ids"]
    # Bilal's target is older than a week
    conn.execute(
        "UPDATE student_targets SET created_at = ? WHERE student_id = ?",
        ((date.today() - timedelta(days=10)).isoformat() + " 08:00:00", ids["bilal"]),
    )
    conn.commit()
    _record(conn, ids["amina"], cohort["weekday"], date.today())

    overview = target_adoption_overview(conn, CohortScope(), include_halaqa_breakdown=True)

    assert overview.total_students == 5
    assert overview.students_with_targets == 3
    assert overview.coverage_percentage == 60.0
    assert overview.weekly_change_percentage == 40.0
    assert overview.halaqa_coverage.halaqat_with_targets == 2
    assert overview.halaqa_coverage.total_halaqat == 2
    assert overview.teacher_coverage.teachers_with_targets == 2
    assert overview.activation_rate == pytest.approx(33.3)
    breakdown = {item.halaqa_name: item for item in overview.halaqa_breakdown}
    assert breakdown["Al-Fajr"].students_with_targets == 2
    assert breakdown["Al-Fajr"].total_students == 3
    assert breakdown["Al-Asr"].coverage_percentage == 50.0


def test_adoption_scoped_to_teacher(conn, cohort):
    overview = target_adoption_overview(conn, CohortScope(teacher_id=cohort["teacher_b"]))
    assert overview.total_students == 2
    assert overview.students_with_targets == 1
    assert overview.teacher_coverage.total_teachers == 1
    assert overview.halaqa_breakdown == []


def test_daily_stats_scale_targets_by_halaqa_calendar(conn, cohort):
    ids = cohort["ids"]
    start, end = SUNDAY, SUNDAY + timedelta(days=6)
    _record(conn, ids["amina"], cohort["weekday"], SUNDAY)
    _record(conn, ids["hafsa"], cohort["daily"], SUNDAY)
    _record(conn, ids["hafsa"], cohort["daily"], SUNDAY + timedelta(days=2))

    stats = daily_achievement_stats(conn, CohortScope(), start, end)

    # Amina and Bilal meet 4 days, Hafsa 7: (4 + 4 + 7) * 10 lines
    assert stats.memorization.target == 150
    assert stats.memorization.achieved == 30
    assert stats.memorization.percentage == 20.0
    assert stats.memorization.unit == "lines"
    assert stats.revision.target == 0
    assert stats.revision.percentage == 0.0
    assert stats.total_students == 5
    assert stats.students_with_targets == 3

    summary = stats.week_summary
    assert summary.total_days == 7
    by_day = {status.date: status for status in summary.days}
    # Sunday: 20 of 30 lines across three students
    assert not by_day[SUNDAY].target_met
    assert by_day[SUNDAY].percentage == pytest.approx(66.7)
    # Tuesday only Hafsa's halaqa meets, and she met it
    assert by_day[SUNDAY + timedelta(days=2)].target_met
    assert by_day[SUNDAY + timedelta(days=2)].percentage == 100.0
    assert summary.days_target_met == 1


def test_daily_stats_percentage_is_capped(conn, cohort):
    ids = cohort["ids"]
    for _ in range(5):
        _record(conn, ids["hafsa"], cohort["daily"], SUNDAY)
    stats = daily_achievement_stats(conn, CohortScope(halaqa_id=cohort["daily"]), SUNDAY, SUNDAY)
    assert stats.memorization.achieved == 50
    assert stats.memorization.target == 10
    assert stats.memorization.percentage == 100.0


def test_daily_stats_reject_long_ranges(conn):
    with pytest.raises(ValidationError):
        daily_achievement_stats(conn, CohortScope(), SUNDAY, SUNDAY + timedelta(days=120))
