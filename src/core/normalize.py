"""
Date, clock-time and number normalization for raw timesheet values.

Every function here is total: malformed input degrades to a best-effort
value (or None) instead of raising.
"""

import math
import re
from datetime import date, datetime

_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_SLASH_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{2,4})")
_CLOCK_RE = re.compile(r"(\d{1,2}):(\d{2})(?::\d{2})?\s*(AM|PM)?", re.IGNORECASE)
# Leading number of a value such as "8 hrs" or "7.5h"
_NUMBER_PREFIX_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

# Tried in order once the explicit formats above have failed
_FALLBACK_DATE_FORMATS = (
    "%Y/%m/%d",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%m-%d-%Y",
)


def normalize_date(raw: str | None) -> str:
    """
    Convert a raw date string to YYYY-MM-DD.

    Accepts YYYY-MM-DD, M/D/YYYY, MM/DD/YYYY and M/D/YY (yy >= 50 is 19yy),
    then ISO datetimes and a few spelled-out formats. Anything else is
    returned stripped but otherwise unchanged.
    """
    if raw is None:
        return ""
    s = str(raw).strip()
    if not s:
        return ""
    if _ISO_DATE_RE.fullmatch(s):
        return s

    slash = _SLASH_DATE_RE.fullmatch(s)
    if slash:
        month, day, year = slash.groups()
        if len(year) == 2:
            year = f"19{year}" if int(year) >= 50 else f"20{year}"
        if len(year) == 4:
            return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    parsed = _parse_generic_date(s)
    if parsed is not None:
        return parsed.isoformat()
    return s


def _parse_generic_date(s: str) -> date | None:
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def is_iso_date(value: str | None) -> bool:
    """True if value is a canonical YYYY-MM-DD string naming a real day."""
    return parse_iso_date(value) is not None


def parse_iso_date(value: str | None) -> date | None:
    """Parse a canonical YYYY-MM-DD string, None for anything else."""
    if not value or not _ISO_DATE_RE.fullmatch(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def time_to_minutes(raw: str | None) -> int | None:
    """
    Minutes since midnight for H:MM, H:MM:SS with optional AM/PM.

    12:xx AM is hour 0 and 12:xx PM is hour 12. Returns None when the
    value is missing, unparseable or out of range.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    match = _CLOCK_RE.fullmatch(s)
    if not match:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2))
    period = (match.group(3) or "").upper()

    if period:
        if not 1 <= hour <= 12:
            return None
        if period == "AM" and hour == 12:
            hour = 0
        elif period == "PM" and hour != 12:
            hour += 12

    if hour > 23 or minute > 59:
        return None
    return hour * 60 + minute


def parse_hour_of_day(raw: str | None) -> int | None:
    """Hour (0-23) of a clock value, None if unparseable."""
    minutes = time_to_minutes(raw)
    if minutes is None:
        return None
    return minutes // 60


def to_number(raw) -> float:
    """
    Coerce a numeric or textual hours value.

    Text is read up to the end of its leading number, so unit suffixes are
    ignored. None, blank and text without a leading number become 0.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        match = _NUMBER_PREFIX_RE.match(str(raw).strip())
        if not match:
            return 0.0
        value = float(match.group(0))
    return value if math.isfinite(value) else 0.0
