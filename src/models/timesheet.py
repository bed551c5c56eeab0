"""
Data models for timesheet rows, overtime allocation and irregularity reports.
"""

from dataclasses import dataclass, field

from core.normalize import to_number

SEVERITY_RANK = {"high": 0, "medium": 1, "low": 2}

# Date value for flags that summarize the whole row set rather than one day
SUMMARY_DATE = "—"


@dataclass(frozen=True)
class TimeEntry:
    """One raw hours_import row. Values are kept exactly as read."""

    date: str
    start: str | None = None
    end: str | None = None
    straight_hours: float | str | None = None
    premium_hours: float | str | None = None
    job_code: str | None = None
    notes: str | None = None

    @property
    def reported_hours(self) -> float:
        return to_number(self.straight_hours) + to_number(self.premium_hours)


@dataclass(frozen=True)
class DayAllocation:
    """Regular/overtime split for one worked date."""

    date: str
    week_start: str
    total_hours: float
    straight_hours: float
    overtime_hours: float


@dataclass(frozen=True)
class WeekSummary:
    """Totals for one Monday-Sunday week."""

    week_start: str
    days: int
    total_hours: float
    straight_hours: float
    overtime_hours: float


@dataclass(frozen=True)
class Flag:
    """A single irregularity finding."""

    severity: str  # "high", "medium" or "low"
    category: str
    date: str  # YYYY-MM-DD or SUMMARY_DATE
    detail: str

    @property
    def severity_rank(self) -> int:
        return SEVERITY_RANK[self.severity]

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.category, self.date, self.detail)


@dataclass
class FraudSummary:
    """Cross-cutting counts over the final (deduplicated) flag list."""

    high: int = 0
    medium: int = 0
    low: int = 0
    duplicates: int = 0
    overlaps: int = 0
    mismatches: int = 0
    weekend_days: int = 0
    longest_streak: int = 0
    admin_hours: float = 0.0
    admin_pct: int = 0
    unrecognized_codes: list[str] = field(default_factory=list)


@dataclass
class FraudReport:
    """Severity-sorted flags plus summary counts."""

    flags: list[Flag] = field(default_factory=list)
    summary: FraudSummary = field(default_factory=FraudSummary)
