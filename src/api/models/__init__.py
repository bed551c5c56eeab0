"""API Pydantic models."""

from .responses import (
    AllocationResponse,
    DraftingMiscResponse,
    EmployeeListResponse,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
    HoursResponse,
    IrregularityResponse,
    TeamIrregularityResponse,
)

__all__ = [
    "HealthResponse",
    "ErrorResponse",
    "ErrorCodes",
    "EmployeeListResponse",
    "AllocationResponse",
    "IrregularityResponse",
    "TeamIrregularityResponse",
    "HoursResponse",
    "DraftingMiscResponse",
]
