"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core import database  # noqa: E402
from models.timesheet import TimeEntry  # noqa: E402


@pytest.fixture
def make_entry():
    """Factory for TimeEntry rows with sensible defaults."""

    def _make(date="2025-06-02", start=None, end=None, hours=None, premium=None, job="ABC-25-001", notes=None):
        return TimeEntry(
            date=date,
            start=start,
            end=end,
            straight_hours=hours,
            premium_hours=premium,
            job_code=job,
            notes=notes,
        )

    return _make


@pytest.fixture
def workweek_rows(make_entry):
    """Mon-Fri 2025-06-02..06, 9h per day from 08:00 to 17:00."""
    return [
        make_entry(date=f"2025-06-0{day}", start="08:00", end="17:00", hours=9)
        for day in range(2, 7)
    ]


@pytest.fixture
def all_jobs_exist():
    """Job lookup that recognizes every code."""
    return lambda codes: set(codes)


@pytest.fixture
def no_jobs_exist():
    """Job lookup that recognizes nothing."""
    return lambda codes: set()


@pytest.fixture
def hours_db(tmp_path, monkeypatch):
    """Temporary SQLite store with the full schema; yields an open connection."""
    db_path = tmp_path / "hours-audit.db"
    monkeypatch.setattr(database, "DB_PATH", db_path)
    conn = database.get_connection()
    database.create_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def sample_import_rows():
    """Rows shaped like read_hours_file() output for two employees."""
    return [
        {"employee_name": "Jane Doe", "date": "6/2/2025", "start": "08:00", "end": "12:00",
         "straight_hours": "4", "job": "ABC-25-001"},
        {"employee_name": "Jane Doe", "date": "2025-06-02", "start": "12:30", "end": "16:30",
         "straight_hours": "4", "job": "TEAM MEETINGS"},
        {"employee_name": "Jane Doe", "date": "2025-06-03", "start": "08:00", "end": "17:00",
         "straight_hours": "7", "job": "XYZ-25-99999"},
        {"employee_name": "John Roe", "date": "2025-06-02", "start": "07:00", "end": "15:00",
         "straight_hours": "8", "job": "NCP-25-1001"},
        {"employee_name": "John Roe", "date": "2025-06-03", "start": "07:00", "end": "09:00",
         "straight_hours": "2", "job": "TEAM MEETINGS"},
    ]
