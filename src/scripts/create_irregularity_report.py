#!/usr/bin/env python3
"""
Create an irregularity report for one employee.

Fetches the employee's hours, allocates weekly overtime, runs the
irregularity rules, writes an Excel workbook and optionally emails it.

Usage:
    uv run python src/scripts/create_irregularity_report.py --employee "Jane Doe" --today 2025-11-07 --email
"""

import argparse
import asyncio
import sys
import traceback
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import OUTPUT_DIR
from core.database import employee_slug, get_connection
from services.analysis import analyze_employee, find_employee, reference_today
from services.email import send_error_email, send_report_email
from services.reports import save_irregularity_report


async def main(employee_arg: str, today_str: str | None = None, email: bool = False):
    """Main entry point."""
    try:
        as_of = (
            datetime.strptime(today_str, "%Y-%m-%d").date() if today_str else reference_today()
        )

        conn = get_connection()
        try:
            # Accept either the display name or its slug
            employee = find_employee(conn, employee_slug(employee_arg))
            if employee is None:
                print(f"No hours found for employee '{employee_arg}'")
                return
            print(f"Analyzing {employee} as of {as_of}")
            analysis = analyze_employee(conn, employee, as_of)
        finally:
            conn.close()

        summary = analysis.fraud.summary
        print(f"  Rows: {len(analysis.rows)}")
        print(f"  Worked days: {len(analysis.allocations)}")
        print(f"  Overtime hours: {analysis.hours.metrics.overtime_hours}")
        print(f"  Flags: {summary.high} high, {summary.medium} medium, {summary.low} low")

        output_dir = OUTPUT_DIR / "reports" / "irregularities"
        output_path = output_dir / f"{employee_slug(employee)}_irregularities_{as_of:%Y_%m_%d}.xlsx"
        save_irregularity_report(employee, analysis.allocations, analysis.fraud, output_path)

        if email:
            await send_report_email(employee, output_path, analysis.fraud, as_of)

        print("\nDone!")

    except Exception as e:
        print(f"\nError: {e}")
        traceback.print_exc()
        if email:
            await send_error_email(e)
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate a timesheet irregularity report")
    parser.add_argument("--employee", required=True, help="Employee name or slug")
    parser.add_argument(
        "--today",
        help="Reference date (YYYY-MM-DD) for the future-date rule. Defaults to AUDIT_TODAY or today.",
    )
    parser.add_argument("--email", action="store_true", help="Email the report when done")
    args = parser.parse_args()

    asyncio.run(main(args.employee, args.today, args.email))
