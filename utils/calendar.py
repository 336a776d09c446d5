from __future__ import annotations

from datetime import date, timedelta
from typing import FrozenSet, Iterable, Optional

# Weekday indexes follow the stored halaqa format: 0 = Sunday .. 6 = Saturday.
DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
ALL_DAYS: FrozenSet[int] = frozenset(range(7))


def parse_active_days(value: Optional[str]) -> Optional[FrozenSet[int]]:
    """Parse "0,1,3,4" into a weekday set; None when the halaqa has no schedule."""
    if not value:
        return None
    days = set()
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            day = int(item)
        except ValueError:
            continue
        if 0 <= day <= 6:
            days.add(day)
    return frozenset(days) or None


def format_active_days(days: Optional[Iterable[int]]) -> Optional[str]:
    if days is None:
        return None
    cleaned = sorted({int(day) for day in days if 0 <= int(day) <= 6})
    return ",".join(str(day) for day in cleaned) or None


def describe_active_days(value: Optional[str]) -> str:
    days = parse_active_days(value)
    if not days:
        return "Every day"
    return ", ".join(DAY_LABELS[day] for day in sorted(days))


def weekday_index(day: date) -> int:
    return (day.weekday() + 1) % 7


def resolve_active_days(active_days: Optional[Iterable[int]]) -> FrozenSet[int]:
    if active_days is None:
        return ALL_DAYS
    return frozenset(active_days)


def is_active_day(day: date, active_days: Optional[Iterable[int]]) -> bool:
    return weekday_index(day) in resolve_active_days(active_days)


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def count_active_days(start: date, end: date, active_days: Optional[Iterable[int]]) -> int:
    days = resolve_active_days(active_days)
    return sum(1 for day in iter_days(start, end) if weekday_index(day) in days)


def get_halaqa_active_days(conn, halaqa_id: int) -> Optional[FrozenSet[int]]:
    cursor = conn.cursor()
    cursor.execute("SELECT active_days FROM halaqat WHERE id = ?", (halaqa_id,))
    row = cursor.fetchone()
    if not row:
        return None
    return parse_active_days(row["active_days"])


def get_primary_halaqa(conn, student_id: int, halaqa_ids: Optional[Iterable[int]] = None):
    """Return (halaqa_id, name, active_days) of the student's primary active enrollment."""
    params = [student_id]
    scope_sql = ""
    if halaqa_ids:
        ids = list(halaqa_ids)
        scope_sql = f" AND sh.halaqa_id IN ({','.join('?' for _ in ids)})"
        params.extend(ids)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT h.id, h.name, h.active_days
        FROM student_halaqat sh
        JOIN halaqat h ON h.id = sh.halaqa_id
        WHERE sh.student_id = ? AND sh.is_active = 1{scope_sql}
        ORDER BY h.id
        LIMIT 1
        """,
        params,
    )
    row = cursor.fetchone()
    if not row:
        return None
    return row["id"], row["name"], parse_active_days(row["active_days"])
