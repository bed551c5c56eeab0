"""
Per-employee analysis: fetch rows once, then allocate, detect and aggregate.
"""

import asyncio
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime

from core.config import ADMIN_CODES, AUDIT_TODAY
from core.database import fetch_employees, fetch_hours_rows, employee_slug, get_connection
from models.timesheet import DayAllocation, FraudReport, TimeEntry
from services.allocation import compute_weekly_allocation
from services.hours import HoursDashboard, build_hours_dashboard, compute_drafting_misc
from services.irregularities import DetectorSettings, detect_irregularities
from services.jobs import job_lookup_for


@dataclass
class EmployeeAnalysis:
    """Allocation, dashboard and irregularity report for one employee."""

    employee: str
    rows: list[TimeEntry]
    allocations: list[DayAllocation]
    hours: HoursDashboard
    fraud: FraudReport


def reference_today() -> date:
    """AUDIT_TODAY when configured, otherwise the real current date."""
    if AUDIT_TODAY:
        return datetime.strptime(AUDIT_TODAY, "%Y-%m-%d").date()
    return date.today()


def find_employee(conn: sqlite3.Connection, slug: str) -> str | None:
    """Resolve a URL slug back to the employee name, None if unknown."""
    for name in fetch_employees(conn):
        if employee_slug(name) == slug:
            return name
    return None


def analyze_rows(
    conn: sqlite3.Connection,
    employee: str,
    rows: list[TimeEntry],
    today: date | str,
    settings: DetectorSettings | None = None,
) -> EmployeeAnalysis:
    """Run allocation, dashboard and detection over already-fetched rows."""
    allocations = compute_weekly_allocation(rows)
    return EmployeeAnalysis(
        employee=employee,
        rows=rows,
        allocations=allocations,
        hours=build_hours_dashboard(rows, allocations),
        fraud=detect_irregularities(
            rows, today, ADMIN_CODES, job_lookup_for(conn), settings=settings
        ),
    )


def analyze_employee(
    conn: sqlite3.Connection,
    employee: str,
    today: date | str | None = None,
    settings: DetectorSettings | None = None,
) -> EmployeeAnalysis:
    """
    Fetch one employee's rows and analyze them.

    Raises:
        DataSourceError: If rows or the job registry cannot be read
    """
    rows = fetch_hours_rows(conn, employee)
    return analyze_rows(conn, employee, rows, today or reference_today(), settings)


def _analyze_in_thread(employee: str, today: date | str) -> EmployeeAnalysis:
    # sqlite3 connections can't cross threads; each analysis opens its own
    conn = get_connection()
    try:
        return analyze_employee(conn, employee, today)
    finally:
        conn.close()


async def analyze_team(
    employees: list[str], today: date | str | None = None
) -> dict[str, EmployeeAnalysis]:
    """
    Analyze several employees concurrently.

    Each analysis is independent; results are combined once all complete.
    The first failure propagates.
    """
    today = today or reference_today()
    results = await asyncio.gather(
        *(asyncio.to_thread(_analyze_in_thread, name, today) for name in employees)
    )
    return dict(zip(employees, results))


def _fetch_in_thread(employee: str) -> list[TimeEntry]:
    conn = get_connection()
    try:
        return fetch_hours_rows(conn, employee)
    finally:
        conn.close()


async def team_drafting_misc(employees: list[str]) -> dict:
    """Drafting vs misc comparison across the given employees."""
    rows = await asyncio.gather(*(asyncio.to_thread(_fetch_in_thread, name) for name in employees))
    return compute_drafting_misc(dict(zip(employees, rows)))
