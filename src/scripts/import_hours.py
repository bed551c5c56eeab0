#!/usr/bin/env python3
"""
Import a timesheet export into the hours_import table.

Accepts an Apple Numbers (.numbers) or Excel (.xlsx) file whose first table
has a header row (Employee, Date, Start, End, Straight Code, Straight Hours,
Premium Code, Premium Hours, Job, Notes).

Usage:
    uv run python src/scripts/import_hours.py <input_file>

Example:
    uv run python src/scripts/import_hours.py data/imports/hours_2025_11.numbers
"""

import argparse
import sys
from collections import Counter
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH
from core.database import create_schema, get_connection, insert_hours_rows
from services.importer import read_hours_file


def main():
    parser = argparse.ArgumentParser(description="Import timesheet rows into the hours database")
    parser.add_argument(
        "input_file",
        type=Path,
        help="Path to the .numbers or .xlsx timesheet export",
    )

    args = parser.parse_args()

    try:
        records = read_hours_file(args.input_file)

        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        conn = get_connection()
        try:
            create_schema(conn)
            inserted = insert_hours_rows(conn, records)
        finally:
            conn.close()

        per_employee = Counter(r["employee_name"] for r in records)
        for name, count in sorted(per_employee.items()):
            print(f"  {name}: {count} row(s)")
        print(f"\nImported {inserted} row(s) into {DB_PATH}")
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
