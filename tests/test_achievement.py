from datetime import date

from utils.achievement import (
    DayTotals,
    StreakState,
    TargetSpec,
    day_is_met,
    lines_to_pages,
    next_streak,
    previous_active_day,
    streaks_over,
)
from utils.calendar import (
    count_active_days,
    describe_active_days,
    format_active_days,
    is_active_day,
    parse_active_days,
    weekday_index,
)

SUN_MON_WED_THU = frozenset({0, 1, 3, 4})
SUNDAY = date(2026, 10, 18)


def test_weekday_index_starts_on_sunday():
    assert weekday_index(SUNDAY) == 0
    assert weekday_index(date(2026, 10, 24)) == 6


def test_active_days_round_trip_through_storage_format():
    assert parse_active_days("0,1,3,4") == SUN_MON_WED_THU
    assert parse_active_days(" 4, 3 ,x,9,1,0") == SUN_MON_WED_THU
    assert parse_active_days("") is None
    assert parse_active_days(None) is None
    assert format_active_days([4, 0, 1, 3, 3]) == "0,1,3,4"
    assert describe_active_days("0,1,3,4") == "Sun, Mon, Wed, Thu"
    assert describe_active_days(None) == "Every day"


def test_no_schedule_means_every_day():
    assert is_active_day(date(2026, 10, 23), None)
    assert count_active_days(SUNDAY, date(2026, 10, 24), None) == 7
    assert count_active_days(SUNDAY, date(2026, 10, 24), SUN_MON_WED_THU) == 4


def test_day_is_met_requires_every_defined_target():
    target = TargetSpec(memorization_lines=10, revision_pages=1)
    assert not day_is_met(target, DayTotals(memorization_lines=10))
    assert day_is_met(target, DayTotals(memorization_lines=10, revision_lines=15))
    assert not day_is_met(target, DayTotals(memorization_lines=9.5, revision_lines=30))


def test_day_is_never_met_without_targets():
    assert not day_is_met(None, DayTotals(memorization_lines=100))
    assert not day_is_met(TargetSpec(), DayTotals(memorization_lines=100))


def test_pages_are_fifteen_lines():
    assert lines_to_pages(15) == 1
    assert lines_to_pages(7.5) == 0.5
    assert DayTotals().add("consolidation", 30).consolidation_pages == 2


def test_previous_active_day_skips_off_days():
    thursday = date(2026, 10, 22)
    next_sunday = date(2026, 10, 25)
    assert previous_active_day(next_sunday, SUN_MON_WED_THU) == thursday
    assert previous_active_day(date(2026, 10, 21), SUN_MON_WED_THU) == date(2026, 10, 19)
    assert previous_active_day(SUNDAY, None) == date(2026, 10, 17)
    assert previous_active_day(SUNDAY, frozenset()) is None


def test_next_streak_continues_across_off_days():
    state = StreakState(current_streak=3, longest_streak=3, last_streak_date=date(2026, 10, 22))
    continued = next_streak(state, date(2026, 10, 25), SUN_MON_WED_THU)
    assert (continued.current_streak, continued.longest_streak) == (4, 4)

    restarted = next_streak(continued, date(2026, 10, 28), SUN_MON_WED_THU)
    assert (restarted.current_streak, restarted.longest_streak) == (1, 4)
    assert restarted.last_streak_date == date(2026, 10, 28)


def test_streaks_over_ignores_trailing_misses():
    assert streaks_over([]) == (0, 0)
    assert streaks_over([True, True, False, True]) == (1, 2)
    assert streaks_over([True, True, True, False, False]) == (3, 3)
    assert streaks_over([False, True, True]) == (2, 2)
