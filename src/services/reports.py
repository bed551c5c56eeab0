"""
Excel export of weekly allocation and irregularity findings.
"""

from datetime import date
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Color, Font, PatternFill
from openpyxl.utils import get_column_letter

from core.config import ALLOCATION_HEADERS, FLAG_HEADERS, WEEK_SUMMARY_HEADERS
from core.normalize import parse_iso_date
from models.timesheet import DayAllocation, FraudReport
from services.allocation import round_hours, summarize_weeks
from services.days import day_name

SEVERITY_FILLS = {
    "high": "FFF8D7DA",
    "medium": "FFFFF3CD",
    "low": "FFE2E3E5",
}


def format_date_display(value: str) -> str:
    """Format a YYYY-MM-DD string as M/D/YYYY; other values pass through."""
    d = parse_iso_date(value)
    if d is None:
        return value
    return f"{d.month}/{d.day}/{d.year}"


def format_date_for_subject(d: date) -> str:
    """Format date for email subject, e.g. 'Nov 7th 2025'."""
    day = d.day
    suffix = "th" if 11 <= day <= 13 else {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return d.strftime(f"%b {day}{suffix} %Y")


def _write_headers(ws, headers: list[str]) -> None:
    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)


def _fit_columns(ws, widths: list[int]) -> None:
    for col_idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width


def write_allocation_sheet(ws, allocations: list[DayAllocation]) -> None:
    """
    Write one row per worked date.

    Columns: Date, Week Of, Day, Total Hours, Regular, Overtime
    """
    _write_headers(ws, ALLOCATION_HEADERS)

    for row_idx, allocation in enumerate(allocations, start=2):
        row_data = [
            format_date_display(allocation.date),
            format_date_display(allocation.week_start),
            day_name(allocation.date),
            round_hours(allocation.total_hours),
            round_hours(allocation.straight_hours),
            round_hours(allocation.overtime_hours),
        ]
        for col_idx, value in enumerate(row_data, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)

    # Totals row
    if allocations:
        total_row = len(allocations) + 2
        ws.cell(row=total_row, column=1, value="Total").font = Font(bold=True)
        for col_idx in (4, 5, 6):
            col = get_column_letter(col_idx)
            ws.cell(row=total_row, column=col_idx, value=f"=SUM({col}2:{col}{total_row - 1})")

    _fit_columns(ws, [12, 12, 6, 12, 10, 10])


def write_week_summary_sheet(ws, allocations: list[DayAllocation]) -> None:
    """Write one row per Monday-Sunday week."""
    _write_headers(ws, WEEK_SUMMARY_HEADERS)

    for row_idx, week in enumerate(summarize_weeks(allocations), start=2):
        row_data = [
            format_date_display(week.week_start),
            week.days,
            round_hours(week.total_hours),
            round_hours(week.straight_hours),
            round_hours(week.overtime_hours),
        ]
        for col_idx, value in enumerate(row_data, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)

    _fit_columns(ws, [12, 6, 12, 10, 10])


def write_flags_sheet(ws, report: FraudReport) -> None:
    """Write flags in report order, shading each row by severity."""
    _write_headers(ws, FLAG_HEADERS)

    for row_idx, flag in enumerate(report.flags, start=2):
        row_data = [flag.severity.upper(), flag.category, format_date_display(flag.date), flag.detail]
        fill = PatternFill(patternType="solid", fgColor=Color(rgb=SEVERITY_FILLS[flag.severity]))
        for col_idx, value in enumerate(row_data, start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            cell.fill = fill

    _fit_columns(ws, [10, 26, 12, 100])


def write_summary_sheet(ws, employee: str, report: FraudReport, allocations: list[DayAllocation]) -> None:
    """Write label/value pairs for the report summary."""
    summary = report.summary
    rows = [
        ("Employee", employee),
        ("Total hours", round_hours(sum(a.total_hours for a in allocations))),
        ("Regular hours", round_hours(sum(a.straight_hours for a in allocations))),
        ("Overtime hours", round_hours(sum(a.overtime_hours for a in allocations))),
        ("High severity flags", summary.high),
        ("Medium severity flags", summary.medium),
        ("Low severity flags", summary.low),
        ("Duplicate entries", summary.duplicates),
        ("Overlapping entries", summary.overlaps),
        ("Hours mismatches", summary.mismatches),
        ("Weekend days", summary.weekend_days),
        ("Longest streak (days)", summary.longest_streak),
        ("Admin hours", summary.admin_hours),
        ("Admin %", summary.admin_pct),
        ("Unrecognized job codes", ", ".join(summary.unrecognized_codes)),
    ]
    for row_idx, (label, value) in enumerate(rows, start=1):
        ws.cell(row=row_idx, column=1, value=label).font = Font(bold=True)
        ws.cell(row=row_idx, column=2, value=value)

    _fit_columns(ws, [26, 40])


def create_irregularity_workbook(
    employee: str, allocations: list[DayAllocation], report: FraudReport
) -> Workbook:
    """
    Create the irregularity report workbook.

    Sheet 1: "1 Weekly Allocation" - regular/overtime per date
    Sheet 2: "2 Weekly Summary" - totals per week
    Sheet 3: "3 Irregularities" - flags, severity shaded
    Sheet 4: "4 Summary" - report counts
    """
    wb = Workbook()

    ws_allocation = wb.active
    ws_allocation.title = "1 Weekly Allocation"
    write_allocation_sheet(ws_allocation, allocations)

    write_week_summary_sheet(wb.create_sheet(title="2 Weekly Summary"), allocations)
    write_flags_sheet(wb.create_sheet(title="3 Irregularities"), report)
    write_summary_sheet(wb.create_sheet(title="4 Summary"), employee, report, allocations)

    return wb


def workbook_to_bytes(wb: Workbook) -> bytes:
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def save_irregularity_report(
    employee: str, allocations: list[DayAllocation], report: FraudReport, output_path: Path
) -> Path:
    """Write the workbook to output_path, creating parent directories."""
    wb = create_irregularity_workbook(employee, allocations, report)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(output_path))
    print(f"Saved Excel report to: {output_path}")
    return output_path
