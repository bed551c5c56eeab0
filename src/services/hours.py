"""
Hours dashboard aggregation built on the weekly overtime allocation.

Regular/overtime figures always come from the allocator, never from the
straight/premium split recorded in the source rows.
"""

import re
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from core.config import (
    ADMIN_CODES,
    DRAFTING_CODE_PATTERN,
    RECENT_DAYS_LIMIT,
    TOP_JOBS_LIMIT,
)
from core.normalize import parse_hour_of_day, parse_iso_date, time_to_minutes
from models.timesheet import DayAllocation, TimeEntry
from services.allocation import round_hours, summarize_weeks
from services.days import day_name, day_total, group_by_date, is_weekend

DAILY_BUCKETS = [
    ("0-4h", 4),
    ("4-6h", 6),
    ("6-8h", 8),
    ("8-10h", 10),
    ("10-12h", 12),
    ("12h+", None),
]

_DRAFTING_RE = re.compile(DRAFTING_CODE_PATTERN)


@dataclass
class HoursMetrics:
    total_hours: float = 0.0
    straight_hours: float = 0.0
    overtime_hours: float = 0.0
    total_days: int = 0
    avg_hours_per_day: float = 0.0
    days_over_8: int = 0
    weekend_days: int = 0


@dataclass
class HoursDashboard:
    """Everything the per-employee dashboard renders."""

    metrics: HoursMetrics = field(default_factory=HoursMetrics)
    monthly: list[dict] = field(default_factory=list)
    weekly_trend: list[dict] = field(default_factory=list)
    top_jobs: list[dict] = field(default_factory=list)
    start_hours: list[dict] = field(default_factory=list)
    end_hours: list[dict] = field(default_factory=list)
    daily_distribution: list[dict] = field(default_factory=list)
    recent_days: list[dict] = field(default_factory=list)
    admin_breakdown: dict = field(default_factory=dict)
    calendar_days: list[dict] = field(default_factory=list)


def _bucket_label(hours: float) -> str:
    for label, upper in DAILY_BUCKETS:
        if upper is None or hours < upper:
            return label
    return DAILY_BUCKETS[-1][0]


def _hour_counts(counter: Counter) -> list[dict]:
    return [{"hour": hour, "count": counter[hour]} for hour in range(24) if counter[hour]]


def build_admin_breakdown(rows: Iterable[TimeEntry], admin_codes=ADMIN_CODES) -> dict:
    """
    Hours per admin code and the admin vs billable split.

    Returns:
        Dict with admin_total, billable_total, admin_pct and a breakdown list of
        {"code", "hours", "pct"} sorted by hours descending
    """
    total = 0.0
    by_code: dict[str, float] = defaultdict(float)
    for row in rows:
        hours = row.reported_hours
        total += hours
        if row.job_code and row.job_code in admin_codes:
            by_code[row.job_code] += hours

    admin_total = sum(by_code.values())
    breakdown = [
        {
            "code": code,
            "hours": round_hours(hours),
            "pct": round(hours / total * 100, 1) if total > 0 else 0.0,
        }
        for code, hours in sorted(by_code.items(), key=lambda item: (-item[1], item[0]))
    ]
    return {
        "admin_total": round_hours(admin_total),
        "billable_total": round_hours(total - admin_total),
        "admin_pct": round(admin_total / total * 100) if total > 0 else 0,
        "breakdown": breakdown,
    }


def build_hours_dashboard(
    rows: Iterable[TimeEntry], allocations: list[DayAllocation]
) -> HoursDashboard:
    """
    Aggregate one employee's rows for display.

    Args:
        rows: Raw timesheet rows
        allocations: compute_weekly_allocation() output for the same rows

    Returns:
        HoursDashboard with every figure rounded to 2 decimals
    """
    rows = list(rows)
    by_date = group_by_date(rows)
    if not by_date:
        return HoursDashboard(admin_breakdown=build_admin_breakdown(rows))

    allocation_by_date = {a.date: a for a in allocations}

    monthly: dict[str, dict] = {}
    job_hours: dict[str, float] = defaultdict(float)
    start_counter: Counter = Counter()
    end_counter: Counter = Counter()
    buckets = Counter({label: 0 for label, _ in DAILY_BUCKETS})
    calendar_days = []
    days_over_8 = 0
    weekend_days = 0

    for day, day_rows in by_date.items():
        total = day_total(day_rows)
        parsed = parse_iso_date(day)
        if parsed is not None and is_weekend(parsed):
            weekend_days += 1
        if total > 8:
            days_over_8 += 1
        buckets[_bucket_label(total)] += 1
        calendar_days.append({"date": day, "hours": round_hours(total)})

        for row in day_rows:
            if row.job_code:
                job_hours[row.job_code] += row.reported_hours

        # First start and last end of the day
        starts = [r.start for r in day_rows if time_to_minutes(r.start) is not None]
        ends = [r.end for r in day_rows if time_to_minutes(r.end) is not None]
        if starts:
            start_counter[parse_hour_of_day(min(starts, key=time_to_minutes))] += 1
        if ends:
            end_counter[parse_hour_of_day(max(ends, key=time_to_minutes))] += 1

        allocation = allocation_by_date.get(day)
        month_key = day[:7] if parsed is not None else day
        month = monthly.setdefault(month_key, {"month": month_key, "straight": 0.0, "overtime": 0.0, "days": 0})
        month["days"] += 1
        if allocation is not None:
            month["straight"] += allocation.straight_hours
            month["overtime"] += allocation.overtime_hours

    total_hours = sum(a.total_hours for a in allocations)
    straight_hours = sum(a.straight_hours for a in allocations)
    overtime_hours = sum(a.overtime_hours for a in allocations)
    total_days = len(by_date)

    metrics = HoursMetrics(
        total_hours=round_hours(total_hours),
        straight_hours=round_hours(straight_hours),
        overtime_hours=round_hours(overtime_hours),
        total_days=total_days,
        avg_hours_per_day=round_hours(total_hours / total_days),
        days_over_8=days_over_8,
        weekend_days=weekend_days,
    )

    monthly_list = [
        {**m, "straight": round_hours(m["straight"]), "overtime": round_hours(m["overtime"])}
        for _, m in sorted(monthly.items())
    ]

    weekly_trend = [
        {
            "week_start": w.week_start,
            "days": w.days,
            "total": round_hours(w.total_hours),
            "straight": round_hours(w.straight_hours),
            "overtime": round_hours(w.overtime_hours),
        }
        for w in summarize_weeks(allocations)
    ]

    top_jobs = [
        {"job": job, "hours": round_hours(hours)}
        for job, hours in sorted(job_hours.items(), key=lambda item: (-item[1], item[0]))[:TOP_JOBS_LIMIT]
    ]

    recent_days = []
    for day in list(by_date)[-RECENT_DAYS_LIMIT:]:
        day_rows = by_date[day]
        recent_days.append({
            "date": day,
            "day_of_week": day_name(day),
            "hours": round_hours(day_total(day_rows)),
            "jobs": list(dict.fromkeys(r.job_code for r in day_rows if r.job_code)),
        })

    return HoursDashboard(
        metrics=metrics,
        monthly=monthly_list,
        weekly_trend=weekly_trend,
        top_jobs=top_jobs,
        start_hours=_hour_counts(start_counter),
        end_hours=_hour_counts(end_counter),
        daily_distribution=[{"bucket": label, "count": buckets[label]} for label, _ in DAILY_BUCKETS],
        recent_days=recent_days,
        admin_breakdown=build_admin_breakdown(rows),
        calendar_days=calendar_days,
    )


# =============================================================================
# TEAM: DRAFTING VS MISC
# =============================================================================


def compute_drafting_misc(rows_by_employee: dict[str, list[TimeEntry]]) -> dict:
    """
    Compare drafting hours (NCP job codes) with misc admin hours per employee.

    Team averages are per unique NCP job across the whole team.
    """
    team_jobs: set[str] = set()
    employees = []
    for name, rows in rows_by_employee.items():
        drafting = 0.0
        misc = 0.0
        jobs: set[str] = set()
        for row in rows:
            if not row.job_code:
                continue
            if _DRAFTING_RE.fullmatch(row.job_code):
                drafting += row.reported_hours
                jobs.add(row.job_code)
            elif row.job_code in ADMIN_CODES:
                misc += row.reported_hours
        team_jobs |= jobs
        job_count = len(jobs)
        employees.append({
            "name": name,
            "drafting_hours": round_hours(drafting),
            "misc_hours": round_hours(misc),
            "ncp_job_count": job_count,
            "avg_drafting_per_job": round_hours(drafting / job_count) if job_count else 0.0,
            "avg_misc_per_job": round_hours(misc / job_count) if job_count else 0.0,
        })

    total_drafting = round_hours(sum(e["drafting_hours"] for e in employees))
    total_misc = round_hours(sum(e["misc_hours"] for e in employees))
    unique_jobs = len(team_jobs)
    combined = total_drafting + total_misc

    return {
        "employees": employees,
        "total_drafting": total_drafting,
        "total_misc": total_misc,
        "unique_ncp_jobs": unique_jobs,
        "avg_drafting_per_job": round_hours(total_drafting / unique_jobs) if unique_jobs else 0.0,
        "avg_misc_per_job": round_hours(total_misc / unique_jobs) if unique_jobs else 0.0,
        "misc_ratio": round(total_misc / combined * 100, 1) if combined else 0.0,
        "misc_per_drafting_hour": round(total_misc / total_drafting, 3) if total_drafting else 0.0,
    }
