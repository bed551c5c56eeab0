"""
Weekly overtime allocation.

The straight/premium split recorded by the source system is not trusted.
Each day's total is re-split against a rolling Monday-Sunday budget of
WEEKLY_REGULAR_HOURS: days consume the budget in calendar order, and the
day that crosses the threshold carries the overtime.
"""

from collections import defaultdict
from typing import Iterable

from core.config import WEEKLY_REGULAR_HOURS
from models.timesheet import DayAllocation, TimeEntry, WeekSummary
from services.days import day_total, group_by_date, week_key


def round_hours(value: float) -> float:
    """Round hours for display. Never used while accumulating."""
    return round(value, 2)


def allocate_day_totals(
    day_totals: dict[str, float], weekly_regular_hours: float = WEEKLY_REGULAR_HOURS
) -> list[DayAllocation]:
    """
    Split per-date totals into regular and overtime hours.

    Args:
        day_totals: {normalized_date: total_hours}
        weekly_regular_hours: Regular-hours budget per Monday-Sunday week

    Returns:
        One DayAllocation per date, ordered by date
    """
    weeks: dict[str, list[str]] = defaultdict(list)
    for day in day_totals:
        weeks[week_key(day)].append(day)

    allocations = []
    for monday, days in weeks.items():
        accumulated = 0.0
        for day in sorted(days):
            total = day_totals[day]
            budget = max(0.0, weekly_regular_hours - accumulated)
            straight = min(total, budget)
            overtime = max(0.0, total - budget)
            accumulated += total
            allocations.append(
                DayAllocation(
                    date=day,
                    week_start=monday,
                    total_hours=total,
                    straight_hours=straight,
                    overtime_hours=overtime,
                )
            )

    allocations.sort(key=lambda a: a.date)
    return allocations


def compute_weekly_allocation(
    rows: Iterable[TimeEntry], weekly_regular_hours: float = WEEKLY_REGULAR_HOURS
) -> list[DayAllocation]:
    """Allocate regular/overtime hours for one employee's rows."""
    by_date = group_by_date(rows)
    totals = {day: day_total(day_rows) for day, day_rows in by_date.items()}
    return allocate_day_totals(totals, weekly_regular_hours)


def summarize_weeks(allocations: Iterable[DayAllocation]) -> list[WeekSummary]:
    """Roll day allocations up to one WeekSummary per week, ordered by week."""
    weeks: dict[str, list[DayAllocation]] = defaultdict(list)
    for allocation in allocations:
        weeks[allocation.week_start].append(allocation)

    return [
        WeekSummary(
            week_start=monday,
            days=len(days),
            total_hours=sum(d.total_hours for d in days),
            straight_hours=sum(d.straight_hours for d in days),
            overtime_hours=sum(d.overtime_hours for d in days),
        )
        for monday, days in sorted(weeks.items())
    ]
