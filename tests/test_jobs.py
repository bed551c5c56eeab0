"""Tests for job registry enrichment."""

import pytest

from core.database import insert_jobs, insert_statuses
from models.timesheet import TimeEntry
from services.jobs import (
    compute_status_breakdown,
    fetch_job_details,
    find_existing_job_codes,
    is_structured_code,
    job_lookup_for,
)


@pytest.fixture
def registry(hours_db):
    insert_statuses(hours_db, {1: "In Design", 2: "Permitting"})
    insert_jobs(hours_db, [
        {"full_number": "ABC-25-001", "project_description": "Kitchen remodel", "city": "Austin",
         "state": "TX", "macro_status": "Active", "status_id": 1, "rush": True},
        {"full_number": "NCP-25-1001", "project_description": "New build", "city": "Dallas",
         "state": "TX", "macro_status": "Active", "status_id": 2},
        {"full_number": "DEF-24-3375", "project_description": "Garage", "macro_status": "Closed",
         "status_id": 99},
    ])
    return hours_db


@pytest.mark.parametrize(
    "code, expected",
    [
        ("ABC-25-001", True),
        ("NCP-25-12345", True),
        ("AB-25-001", True),
        ("ABCDE-25-001", False),
        ("abc-25-001", False),
        ("ABC-25-01", False),
        ("meeting", False),
        (None, False),
    ],
)
def test_is_structured_code(code, expected):
    assert is_structured_code(code) is expected


def test_find_existing_job_codes(registry):
    assert find_existing_job_codes(registry, ["ABC-25-001", "XYZ-25-99999"]) == {"ABC-25-001"}
    assert job_lookup_for(registry)(["NCP-25-1001"]) == {"NCP-25-1001"}


def test_fetch_job_details(registry):
    details = fetch_job_details(registry, ["ABC-25-001", "DEF-24-3375", "XYZ-25-99999"])

    assert set(details) == {"ABC-25-001", "DEF-24-3375"}
    abc = details["ABC-25-001"]
    assert abc.status_name == "In Design"
    assert abc.city == "Austin"
    assert abc.rush is True
    # Unknown status id falls back to the macro status
    assert details["DEF-24-3375"].status_name == "Closed"
    assert details["DEF-24-3375"].rush is False


def test_fetch_job_details_empty(registry):
    assert fetch_job_details(registry, []) == {}


def test_status_breakdown(registry):
    rows = [
        TimeEntry(date="2025-06-02", straight_hours=4, job_code="ABC-25-001"),
        TimeEntry(date="2025-06-03", straight_hours=2, job_code="ABC-25-001"),
        TimeEntry(date="2025-06-03", straight_hours=3, job_code="NCP-25-1001"),
        TimeEntry(date="2025-06-04", straight_hours=1.5, job_code="XYZ-25-99999"),
        TimeEntry(date="2025-06-04", straight_hours=8, job_code="TEAM MEETINGS"),
    ]
    assert compute_status_breakdown(registry, rows) == [
        {"status": "In Design", "hours": 6, "jobs": 1},
        {"status": "Permitting", "hours": 3, "jobs": 1},
        {"status": "Unknown", "hours": 1.5, "jobs": 1},
    ]
