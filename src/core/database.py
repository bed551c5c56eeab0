"""
SQLite storage for imported hours, the job registry and API request logs.
"""

import re
import sqlite3
from typing import Iterable

from core.config import DB_PATH, JOB_LOOKUP_CHUNK, PAGE_SIZE
from models.timesheet import TimeEntry


class DataSourceError(RuntimeError):
    """Raised when the hours store or job registry cannot be read."""


def get_connection() -> sqlite3.Connection:
    """Get a database connection."""
    return sqlite3.connect(DB_PATH)


def create_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes if they don't exist."""
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS hours_import (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            employee_name TEXT NOT NULL,
            date TEXT,
            start TEXT,
            "end" TEXT,
            straight_code TEXT,
            straight_hours TEXT,
            premium_code TEXT,
            premium_hours TEXT,
            job TEXT,
            notes TEXT
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS statuses (
            "index" INTEGER PRIMARY KEY,
            name TEXT NOT NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS jobs (
            "index" INTEGER PRIMARY KEY AUTOINCREMENT,
            full_number TEXT UNIQUE NOT NULL,
            project_description TEXT,
            city TEXT,
            state TEXT,
            macro_status TEXT,
            status_id INTEGER,
            rush TEXT
        )
    """)

    # API request logging
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS api_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            request_id TEXT UNIQUE NOT NULL,
            timestamp TEXT NOT NULL,
            endpoint TEXT NOT NULL,
            method TEXT NOT NULL,
            client_ip TEXT,
            employee TEXT,
            status_code INTEGER NOT NULL,
            error_code TEXT,
            error_message TEXT,
            processing_time_ms INTEGER NOT NULL,
            flag_count INTEGER,
            total_hours REAL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS api_request_details (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            request_id TEXT NOT NULL,
            detail_type TEXT NOT NULL CHECK(detail_type IN ('validation_error', 'data_source_error', 'warning')),
            message TEXT NOT NULL,
            FOREIGN KEY (request_id) REFERENCES api_requests(request_id)
        )
    """)

    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_hours_import_employee ON hours_import(employee_name)"
    )
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)"
    )
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_request_details_request ON api_request_details(request_id)"
    )

    conn.commit()


# =============================================================================
# HOURS
# =============================================================================


def fetch_hours_rows(
    conn: sqlite3.Connection, employee: str, page_size: int = PAGE_SIZE
) -> list[TimeEntry]:
    """
    Fetch all hours rows for one employee, one page at a time.

    Pages are read in id order until a short page comes back.

    Raises:
        DataSourceError: If any page cannot be read
    """
    rows = []
    offset = 0
    while True:
        try:
            cursor = conn.execute(
                """
                SELECT date, start, "end", straight_hours, premium_hours, job, notes
                FROM hours_import
                WHERE employee_name = ?
                ORDER BY id
                LIMIT ? OFFSET ?
                """,
                (employee, page_size, offset),
            )
            page = cursor.fetchall()
        except sqlite3.Error as e:
            raise DataSourceError(f"hours_import fetch error at offset {offset}: {e}") from e

        rows.extend(
            TimeEntry(
                date=date or "",
                start=start,
                end=end,
                straight_hours=straight,
                premium_hours=premium,
                job_code=job,
                notes=notes,
            )
            for date, start, end, straight, premium, job, notes in page
        )
        if len(page) < page_size:
            break
        offset += page_size

    return rows


def fetch_employees(conn: sqlite3.Connection) -> list[str]:
    """All distinct employee names in hours_import, sorted."""
    try:
        cursor = conn.execute(
            "SELECT DISTINCT employee_name FROM hours_import "
            "WHERE employee_name IS NOT NULL AND employee_name != ''"
        )
        return sorted(name for (name,) in cursor.fetchall())
    except sqlite3.Error as e:
        raise DataSourceError(f"employee list fetch error: {e}") from e


def employee_slug(name: str) -> str:
    """URL slug for an employee name: 'Jane Q. Doe' -> 'jane-q-doe'."""
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def insert_hours_rows(conn: sqlite3.Connection, rows: Iterable[dict]) -> int:
    """Insert imported hours rows. Returns the number inserted."""
    cursor = conn.cursor()
    count = 0
    for row in rows:
        cursor.execute(
            """
            INSERT INTO hours_import (
                employee_name, date, start, "end", straight_code, straight_hours,
                premium_code, premium_hours, job, notes
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                row["employee_name"],
                row.get("date"),
                row.get("start"),
                row.get("end"),
                row.get("straight_code"),
                row.get("straight_hours"),
                row.get("premium_code"),
                row.get("premium_hours"),
                row.get("job"),
                row.get("notes"),
            ),
        )
        count += 1
    conn.commit()
    return count


# =============================================================================
# JOB + STATUS REGISTRY
# =============================================================================


def fetch_jobs(conn: sqlite3.Connection, codes: list[str]) -> list[dict]:
    """
    Fetch job registry rows for the given full_numbers.

    Codes are queried in chunks of JOB_LOOKUP_CHUNK. Unknown codes are
    simply absent from the result.

    Raises:
        DataSourceError: If the jobs table cannot be read
    """
    unique = list(dict.fromkeys(codes))
    result = []
    for i in range(0, len(unique), JOB_LOOKUP_CHUNK):
        chunk = unique[i:i + JOB_LOOKUP_CHUNK]
        placeholders = ", ".join("?" for _ in chunk)
        try:
            cursor = conn.execute(
                f"""
                SELECT "index", full_number, project_description, city, state,
                       macro_status, status_id, rush
                FROM jobs
                WHERE full_number IN ({placeholders})
                """,
                chunk,
            )
            columns = [c[0] for c in cursor.description]
            result.extend(dict(zip(columns, row)) for row in cursor.fetchall())
        except sqlite3.Error as e:
            raise DataSourceError(f"jobs fetch error: {e}") from e
    return result


def fetch_statuses(conn: sqlite3.Connection) -> dict[int, str]:
    """Status registry: {index: name}."""
    try:
        cursor = conn.execute('SELECT "index", name FROM statuses')
        return {int(index): name for index, name in cursor.fetchall()}
    except sqlite3.Error as e:
        raise DataSourceError(f"statuses fetch error: {e}") from e


def insert_jobs(conn: sqlite3.Connection, jobs: Iterable[dict]) -> None:
    cursor = conn.cursor()
    for job in jobs:
        cursor.execute(
            """
            INSERT OR REPLACE INTO jobs (
                full_number, project_description, city, state, macro_status, status_id, rush
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                job["full_number"],
                job.get("project_description", ""),
                job.get("city", ""),
                job.get("state", ""),
                job.get("macro_status", ""),
                job.get("status_id"),
                str(job.get("rush", False)).lower(),
            ),
        )
    conn.commit()


def insert_statuses(conn: sqlite3.Connection, statuses: dict[int, str]) -> None:
    cursor = conn.cursor()
    for index, name in statuses.items():
        cursor.execute(
            'INSERT OR REPLACE INTO statuses ("index", name) VALUES (?, ?)',
            (index, name),
        )
    conn.commit()
