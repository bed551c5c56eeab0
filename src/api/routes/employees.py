"""Employee hours, allocation and irregularity endpoints."""

import asyncio
import time
from contextlib import contextmanager
from dataclasses import asdict
from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import Response

from api.logging import RequestLog, log_request
from api.models.responses import (
    AllocationResponse,
    DraftingMiscResponse,
    EmployeeListResponse,
    ErrorCodes,
    HoursResponse,
    IrregularityResponse,
    TeamIrregularityResponse,
)
from core.database import DataSourceError, employee_slug, fetch_employees, get_connection
from services.allocation import round_hours, summarize_weeks
from services.analysis import (
    EmployeeAnalysis,
    analyze_employee,
    analyze_team,
    find_employee,
    reference_today,
    team_drafting_misc,
)
from services.jobs import compute_status_breakdown
from services.reports import create_irregularity_workbook, workbook_to_bytes

router = APIRouter(prefix="/v1")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def parse_today(date_str: str | None) -> date:
    """Parse the ?today= override, falling back to the configured reference date."""
    if not date_str:
        return reference_today()
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid today format",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": ["Expected format: YYYY-MM-DD"],
            },
        )


@contextmanager
def request_logging(request: Request, endpoint: str):
    """
    Record one API call in the request log.

    Service errors are translated to HTTPException with the standard
    {"error", "code", "details"} body. The log is written whatever happens.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint=endpoint,
        method=request.method,
        client_ip=get_client_ip(request),
    )

    try:
        yield request_log
        request_log.status_code = 200

    except HTTPException as e:
        request_log.status_code = e.status_code
        if isinstance(e.detail, dict):
            request_log.error_code = e.detail.get("code")
            request_log.error_message = e.detail.get("error")
            for detail in e.detail.get("details", []):
                request_log.details.append(("validation_error", detail))
        else:
            request_log.error_message = str(e.detail)
        raise

    except DataSourceError as e:
        request_log.status_code = 502
        request_log.error_code = ErrorCodes.DATA_SOURCE_ERROR
        request_log.error_message = str(e)
        request_log.details.append(("data_source_error", str(e)))

        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Hours data source unavailable",
                "code": ErrorCodes.DATA_SOURCE_ERROR,
                "details": [str(e)],
            },
        )

    except ValueError as e:
        request_log.status_code = 400
        request_log.error_code = ErrorCodes.INVALID_REQUEST
        request_log.error_message = str(e)

        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid request",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": [str(e)],
            },
        )

    except Exception as e:
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Internal server error",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        try:
            log_request(request_log)
        except Exception:
            # Don't fail the request if logging fails
            pass


def employee_not_found(slug: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": "Employee not found",
            "code": ErrorCodes.EMPLOYEE_NOT_FOUND,
            "details": [f"No hours recorded for '{slug}'"],
        },
    )


def _list_in_thread() -> list[str]:
    conn = get_connection()
    try:
        return fetch_employees(conn)
    finally:
        conn.close()


def _analyze_in_thread(
    slug: str, today: date, with_status: bool = False
) -> tuple[EmployeeAnalysis | None, list[dict]]:
    """
    Resolve the slug and analyze that employee on a fresh connection.

    Returns (None, []) when the slug is unknown.
    """
    conn = get_connection()
    try:
        employee = find_employee(conn, slug)
        if employee is None:
            return None, []
        analysis = analyze_employee(conn, employee, today)
        breakdown = compute_status_breakdown(conn, analysis.rows) if with_status else []
        return analysis, breakdown
    finally:
        conn.close()


async def _load(request_log: RequestLog, slug: str, today: date, with_status: bool = False):
    analysis, breakdown = await asyncio.to_thread(_analyze_in_thread, slug, today, with_status)
    if analysis is None:
        raise employee_not_found(slug)
    request_log.employee = analysis.employee
    request_log.flag_count = len(analysis.fraud.flags)
    request_log.total_hours = analysis.hours.metrics.total_hours
    return analysis, breakdown


@router.get("/employees", response_model=EmployeeListResponse)
async def list_employees(request: Request):
    """List every employee with imported hours."""
    with request_logging(request, "/v1/employees"):
        names = await asyncio.to_thread(_list_in_thread)
        return EmployeeListResponse(
            employees=[{"name": name, "slug": employee_slug(name)} for name in names]
        )


@router.get("/employees/{slug}/hours", response_model=HoursResponse)
async def employee_hours(request: Request, slug: str):
    """Hours dashboard: metrics, trends, histograms and breakdowns."""
    with request_logging(request, "/v1/employees/{slug}/hours") as request_log:
        analysis, breakdown = await _load(request_log, slug, reference_today(), with_status=True)
        return HoursResponse(
            employee=analysis.employee,
            status_breakdown=breakdown,
            **asdict(analysis.hours),
        )


@router.get("/employees/{slug}/allocation", response_model=AllocationResponse)
async def employee_allocation(request: Request, slug: str):
    """Regular/overtime split per worked date and per week."""
    with request_logging(request, "/v1/employees/{slug}/allocation") as request_log:
        analysis, _ = await _load(request_log, slug, reference_today())
        allocations = analysis.allocations
        return AllocationResponse(
            employee=analysis.employee,
            days=[
                {
                    "date": a.date,
                    "week_start": a.week_start,
                    "total_hours": round_hours(a.total_hours),
                    "straight_hours": round_hours(a.straight_hours),
                    "overtime_hours": round_hours(a.overtime_hours),
                }
                for a in allocations
            ],
            weeks=[
                {
                    "week_start": w.week_start,
                    "days": w.days,
                    "total_hours": round_hours(w.total_hours),
                    "straight_hours": round_hours(w.straight_hours),
                    "overtime_hours": round_hours(w.overtime_hours),
                }
                for w in summarize_weeks(allocations)
            ],
            total_hours=round_hours(sum(a.total_hours for a in allocations)),
            straight_hours=round_hours(sum(a.straight_hours for a in allocations)),
            overtime_hours=round_hours(sum(a.overtime_hours for a in allocations)),
        )


@router.get("/employees/{slug}/irregularities", response_model=IrregularityResponse)
async def employee_irregularities(
    request: Request,
    slug: str,
    today: Annotated[str | None, Query(description="Reference date (YYYY-MM-DD)")] = None,
):
    """Severity-sorted irregularity flags plus summary counts."""
    with request_logging(request, "/v1/employees/{slug}/irregularities") as request_log:
        as_of = parse_today(today)
        analysis, _ = await _load(request_log, slug, as_of)
        return IrregularityResponse(
            employee=analysis.employee,
            as_of=as_of.isoformat(),
            flags=[asdict(flag) for flag in analysis.fraud.flags],
            summary=asdict(analysis.fraud.summary),
        )


@router.get("/employees/{slug}/report.xlsx")
async def employee_report(
    request: Request,
    slug: str,
    today: Annotated[str | None, Query(description="Reference date (YYYY-MM-DD)")] = None,
):
    """Excel workbook with allocation, weekly summary and irregularities."""
    with request_logging(request, "/v1/employees/{slug}/report.xlsx") as request_log:
        as_of = parse_today(today)
        analysis, _ = await _load(request_log, slug, as_of)
        wb = create_irregularity_workbook(analysis.employee, analysis.allocations, analysis.fraud)
        excel_bytes = await asyncio.to_thread(workbook_to_bytes, wb)
        filename = f"{slug}-irregularities-{as_of.isoformat()}.xlsx"
        return Response(
            content=excel_bytes,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )


@router.get("/team/drafting", response_model=DraftingMiscResponse)
async def team_drafting(request: Request):
    """Drafting (NCP jobs) vs misc admin hours across all employees."""
    with request_logging(request, "/v1/team/drafting"):
        names = await asyncio.to_thread(_list_in_thread)
        return DraftingMiscResponse(**await team_drafting_misc(names))


@router.get("/team/irregularities", response_model=TeamIrregularityResponse)
async def team_irregularities(
    request: Request,
    today: Annotated[str | None, Query(description="Reference date (YYYY-MM-DD)")] = None,
):
    """Irregularity summary counts per employee, analyzed concurrently."""
    with request_logging(request, "/v1/team/irregularities") as request_log:
        as_of = parse_today(today)
        names = await asyncio.to_thread(_list_in_thread)
        analyses = await analyze_team(names, as_of)
        request_log.flag_count = sum(len(a.fraud.flags) for a in analyses.values())
        return TeamIrregularityResponse(
            as_of=as_of.isoformat(),
            employees=[
                {
                    "name": name,
                    "slug": employee_slug(name),
                    "total_hours": analysis.hours.metrics.total_hours,
                    "overtime_hours": analysis.hours.metrics.overtime_hours,
                    "flag_count": len(analysis.fraud.flags),
                    "summary": asdict(analysis.fraud.summary),
                }
                for name, analysis in analyses.items()
            ],
        )
