"""Pydantic response models for API endpoints."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"
    DATA_SOURCE_ERROR = "DATA_SOURCE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class EmployeeResponse(BaseModel):
    name: str
    slug: str


class EmployeeListResponse(BaseModel):
    employees: list[EmployeeResponse]


class AllocationRow(BaseModel):
    """One worked date, hours rounded to 2 decimals."""

    date: str
    week_start: str
    total_hours: float
    straight_hours: float
    overtime_hours: float


class WeekRow(BaseModel):
    week_start: str
    days: int
    total_hours: float
    straight_hours: float
    overtime_hours: float


class AllocationResponse(BaseModel):
    employee: str
    days: list[AllocationRow]
    weeks: list[WeekRow]
    total_hours: float
    straight_hours: float
    overtime_hours: float


class FlagResponse(BaseModel):
    severity: str
    category: str
    date: str
    detail: str


class FraudSummaryResponse(BaseModel):
    high: int
    medium: int
    low: int
    duplicates: int
    overlaps: int
    mismatches: int
    weekend_days: int
    longest_streak: int
    admin_hours: float
    admin_pct: int
    unrecognized_codes: list[str]


class IrregularityResponse(BaseModel):
    """Irregularity report for one employee as of a reference date."""

    employee: str
    as_of: str
    flags: list[FlagResponse]
    summary: FraudSummaryResponse


class TeamIrregularityRow(BaseModel):
    name: str
    slug: str
    total_hours: float
    overtime_hours: float
    flag_count: int
    summary: FraudSummaryResponse


class TeamIrregularityResponse(BaseModel):
    """Irregularity summary counts for every employee."""

    as_of: str
    employees: list[TeamIrregularityRow]


class HoursMetricsResponse(BaseModel):
    total_hours: float
    straight_hours: float
    overtime_hours: float
    total_days: int
    avg_hours_per_day: float
    days_over_8: int
    weekend_days: int


class HoursResponse(BaseModel):
    """Hours dashboard for one employee."""

    employee: str
    metrics: HoursMetricsResponse
    monthly: list[dict]
    weekly_trend: list[dict]
    top_jobs: list[dict]
    start_hours: list[dict]
    end_hours: list[dict]
    daily_distribution: list[dict]
    recent_days: list[dict]
    admin_breakdown: dict
    calendar_days: list[dict]
    status_breakdown: list[dict]


class DraftingEmployee(BaseModel):
    name: str
    drafting_hours: float
    misc_hours: float
    ncp_job_count: int
    avg_drafting_per_job: float
    avg_misc_per_job: float


class DraftingMiscResponse(BaseModel):
    employees: list[DraftingEmployee]
    total_drafting: float
    total_misc: float
    unique_ncp_jobs: int
    avg_drafting_per_job: float
    avg_misc_per_job: float
    misc_ratio: float
    misc_per_drafting_hour: float
