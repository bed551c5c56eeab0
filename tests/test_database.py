"""Tests for the SQLite hours store and job registry access."""

import sqlite3

import pytest

from core.database import (
    DataSourceError,
    employee_slug,
    fetch_employees,
    fetch_hours_rows,
    fetch_jobs,
    fetch_statuses,
    insert_hours_rows,
    insert_jobs,
    insert_statuses,
)


def test_fetch_hours_rows_pages_in_insert_order(hours_db, sample_import_rows):
    insert_hours_rows(hours_db, sample_import_rows)

    rows = fetch_hours_rows(hours_db, "Jane Doe", page_size=2)

    assert [r.date for r in rows] == ["6/2/2025", "2025-06-02", "2025-06-03"]
    assert rows[0].start == "08:00"
    assert rows[0].straight_hours == "4"
    assert rows[0].reported_hours == 4
    assert rows[2].job_code == "XYZ-25-99999"


def test_fetch_hours_rows_exact_page_multiple(hours_db):
    insert_hours_rows(hours_db, [{"employee_name": "A", "date": f"2025-06-0{d}"} for d in range(1, 5)])
    assert len(fetch_hours_rows(hours_db, "A", page_size=2)) == 4


def test_fetch_hours_rows_unknown_employee(hours_db):
    assert fetch_hours_rows(hours_db, "Nobody") == []


def test_fetch_employees_sorted_distinct(hours_db, sample_import_rows):
    insert_hours_rows(hours_db, sample_import_rows)
    assert fetch_employees(hours_db) == ["Jane Doe", "John Roe"]


def test_missing_tables_raise_data_source_error():
    conn = sqlite3.connect(":memory:")
    try:
        with pytest.raises(DataSourceError, match="offset 0"):
            fetch_hours_rows(conn, "Jane Doe")
        with pytest.raises(DataSourceError):
            fetch_employees(conn)
        with pytest.raises(DataSourceError):
            fetch_jobs(conn, ["ABC-25-001"])
    finally:
        conn.close()


@pytest.mark.parametrize(
    "name, slug",
    [
        ("Jane Doe", "jane-doe"),
        ("Jane Q. Doe", "jane-q-doe"),
        ("  Mary   O'Neil ", "mary-oneil"),
    ],
)
def test_employee_slug(name, slug):
    assert employee_slug(name) == slug


def test_fetch_jobs_in_chunks(hours_db):
    codes = [f"ABC-25-{n:03d}" for n in range(250)]
    insert_jobs(hours_db, [{"full_number": code, "status_id": 1} for code in codes])

    found = fetch_jobs(hours_db, codes + ["ZZZ-25-999", codes[0]])

    assert len(found) == 250
    assert {row["full_number"] for row in found} == set(codes)


def test_fetch_statuses(hours_db):
    insert_statuses(hours_db, {1: "Active", 2: "Closed"})
    assert fetch_statuses(hours_db) == {1: "Active", 2: "Closed"}
