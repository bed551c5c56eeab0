"""
Job registry enrichment: existence checks, job details and status breakdown.
"""

import re
import sqlite3
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from core.config import ADMIN_CODES, JOB_CODE_PATTERN
from core.database import fetch_jobs, fetch_statuses
from models.timesheet import TimeEntry

_JOB_CODE_RE = re.compile(JOB_CODE_PATTERN)


@dataclass(frozen=True)
class JobDetail:
    """Registry metadata for one structured job code."""

    full_number: str
    description: str
    city: str
    state: str
    macro_status: str
    status_name: str
    rush: bool


def is_structured_code(code: str | None) -> bool:
    return bool(code) and _JOB_CODE_RE.fullmatch(code) is not None


def find_existing_job_codes(conn: sqlite3.Connection, codes: list[str]) -> set[str]:
    """Subset of codes present in the job registry."""
    return {row["full_number"] for row in fetch_jobs(conn, codes)}


def job_lookup_for(conn: sqlite3.Connection):
    """Job existence lookup bound to a connection, for detect_irregularities."""

    def lookup(codes: list[str]) -> set[str]:
        return find_existing_job_codes(conn, codes)

    return lookup


def _parse_rush(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def fetch_job_details(conn: sqlite3.Connection, codes: list[str]) -> dict[str, JobDetail]:
    """
    Fetch job details for a list of full_numbers.

    Status names are resolved through the statuses table, falling back to
    the job's macro_status when the status id is unknown.

    Returns:
        {full_number: JobDetail} for codes found in the registry
    """
    if not codes:
        return {}

    statuses = fetch_statuses(conn)
    details = {}
    for row in fetch_jobs(conn, codes):
        status_id = row.get("status_id")
        status_name = None
        if status_id is not None:
            try:
                status_name = statuses.get(int(status_id))
            except (TypeError, ValueError):
                status_name = None
        macro_status = row.get("macro_status") or ""
        details[row["full_number"]] = JobDetail(
            full_number=row["full_number"],
            description=row.get("project_description") or "",
            city=row.get("city") or "",
            state=row.get("state") or "",
            macro_status=macro_status,
            status_name=status_name or macro_status,
            rush=_parse_rush(row.get("rush")),
        )
    return details


def compute_status_breakdown(
    conn: sqlite3.Connection, rows: Iterable[TimeEntry]
) -> list[dict]:
    """
    Hours billed to structured job codes, grouped by current job status.

    Codes missing from the registry are grouped under "Unknown".

    Returns:
        List of {"status", "hours", "jobs"} sorted by hours descending
    """
    hours_by_code: dict[str, float] = defaultdict(float)
    for row in rows:
        if row.job_code in ADMIN_CODES or not is_structured_code(row.job_code):
            continue
        hours_by_code[row.job_code] += row.reported_hours

    details = fetch_job_details(conn, list(hours_by_code))

    by_status: dict[str, dict] = {}
    for code, hours in hours_by_code.items():
        detail = details.get(code)
        status = (detail.status_name if detail else "") or "Unknown"
        entry = by_status.setdefault(status, {"status": status, "hours": 0.0, "jobs": 0})
        entry["hours"] += hours
        entry["jobs"] += 1

    breakdown = sorted(by_status.values(), key=lambda e: (-e["hours"], e["status"]))
    for entry in breakdown:
        entry["hours"] = round(entry["hours"], 2)
    return breakdown
