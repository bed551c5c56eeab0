"""
Timesheet import from Apple Numbers or Excel exports.

The first table of a .numbers document (or the active sheet of an .xlsx
workbook) must have a header row. Headers are matched case-insensitively;
only Employee and Date are required.
"""

from datetime import date, datetime, time
from pathlib import Path

from numbers_parser import Document
from openpyxl import load_workbook

# Header text -> hours_import column
HEADER_MAP = {
    "employee": "employee_name",
    "employee name": "employee_name",
    "date": "date",
    "start": "start",
    "end": "end",
    "straight code": "straight_code",
    "straight hours": "straight_hours",
    "premium code": "premium_code",
    "premium hours": "premium_hours",
    "job": "job",
    "notes": "notes",
}
REQUIRED_COLUMNS = {"employee_name", "date"}
CLOCK_COLUMNS = {"start", "end"}


def _cell_text(value) -> str | None:
    """Render a cell as text the normalizer understands."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    text = str(value).strip()
    return text or None


def _clock_text(value) -> str | None:
    """Render a Start/End cell; time-formatted cells often arrive as datetimes."""
    if isinstance(value, (datetime, time)):
        return value.strftime("%H:%M")
    return _cell_text(value)


def _read_numbers_rows(path: Path) -> list[tuple]:
    doc = Document(str(path))
    try:
        table = doc.sheets[0].tables[0]
    except IndexError as e:
        raise ValueError(f"No table found in '{path.name}'") from e
    return [tuple(row) for row in table.rows(values_only=True)]


def _read_xlsx_rows(path: Path) -> list[tuple]:
    wb = load_workbook(str(path), read_only=True, data_only=True)
    try:
        return [tuple(row) for row in wb.active.iter_rows(values_only=True)]
    finally:
        wb.close()


def rows_to_records(table_rows: list[tuple]) -> list[dict]:
    """
    Map a header row plus data rows to hours_import records.

    Raises:
        ValueError: If the table is empty or required columns are missing
    """
    if not table_rows:
        raise ValueError("Input file contains no rows")

    header = [str(h).strip().lower() if h is not None else "" for h in table_rows[0]]
    columns = {idx: HEADER_MAP[name] for idx, name in enumerate(header) if name in HEADER_MAP}

    missing = REQUIRED_COLUMNS - set(columns.values())
    if missing:
        raise ValueError(f"Missing required column(s): {', '.join(sorted(missing))}")

    records = []
    for row in table_rows[1:]:
        record = {}
        for idx, column in columns.items():
            value = row[idx] if idx < len(row) else None
            record[column] = _clock_text(value) if column in CLOCK_COLUMNS else _cell_text(value)
        if not record.get("employee_name"):
            continue
        records.append(record)
    return records


def read_hours_file(path: Path) -> list[dict]:
    """
    Read timesheet rows from a .numbers or .xlsx file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the table is malformed
    """
    print(f"Reading input file: {path}")

    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".numbers":
        table_rows = _read_numbers_rows(path)
    elif suffix == ".xlsx":
        table_rows = _read_xlsx_rows(path)
    else:
        raise ValueError(f"Unsupported file type '{suffix}' (expected .numbers or .xlsx)")

    records = rows_to_records(table_rows)
    print(f"Parsed {len(records)} row(s) from '{path.name}'")
    return records
