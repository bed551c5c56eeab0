"""API route modules."""

from .employees import router as employees_router
from .health import router as health_router

__all__ = ["health_router", "employees_router"]
