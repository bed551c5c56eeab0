"""
Date grouping shared by the allocator, the irregularity detector and the
hours dashboard.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable

from core.normalize import normalize_date, parse_iso_date
from models.timesheet import TimeEntry

DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def group_by_date(rows: Iterable[TimeEntry]) -> dict[str, tuple[TimeEntry, ...]]:
    """
    Group rows by normalized date, preserving row order within each date.

    This is the only place raw row dates are normalized. Rows with a blank
    date are dropped. Keys are returned in ascending (string) order.
    """
    grouped: dict[str, list[TimeEntry]] = defaultdict(list)
    for row in rows:
        day = normalize_date(row.date)
        if day:
            grouped[day].append(row)
    return {day: tuple(grouped[day]) for day in sorted(grouped)}


def day_total(rows: Iterable[TimeEntry]) -> float:
    """Sum of straight + premium hours over a day's rows."""
    return sum(row.reported_hours for row in rows)


def week_start(day: date) -> date:
    """Monday on or before the given date."""
    return day - timedelta(days=day.weekday())


def week_key(day_str: str) -> str:
    """Monday (YYYY-MM-DD) for a normalized date; opaque dates key themselves."""
    parsed = parse_iso_date(day_str)
    if parsed is None:
        return day_str
    return week_start(parsed).isoformat()


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def day_name(day_str: str) -> str:
    """Short weekday name ('Mon'), empty for opaque dates."""
    parsed = parse_iso_date(day_str)
    return DAY_NAMES[parsed.weekday()] if parsed else ""
