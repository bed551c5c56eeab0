"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(os.environ.get("HOURS_DB_PATH", PROJECT_ROOT / "data" / "db" / "hours-audit.db"))
OUTPUT_DIR = PROJECT_ROOT / "output"

# =============================================================================
# EMAIL CONFIGURATION
# =============================================================================

FROM_EMAIL = os.environ.get("FROM_EMAIL", "")
TO_EMAIL = os.environ.get("TO_EMAIL", "")
ERROR_EMAIL = os.environ.get("ERROR_EMAIL", "")

# =============================================================================
# ROW SOURCE
# =============================================================================

PAGE_SIZE = 1000  # hours_import rows per page
JOB_LOOKUP_CHUNK = 100  # job codes per registry query

# Reference "today" for future-date detection (YYYY-MM-DD). Empty = real date.
AUDIT_TODAY = os.environ.get("AUDIT_TODAY", "")

# =============================================================================
# OVERTIME
# =============================================================================

WEEKLY_REGULAR_HOURS = float(os.environ.get("WEEKLY_REGULAR_HOURS", "40"))

# =============================================================================
# JOB CODES
# =============================================================================

# Known admin / non-billable codes (matched exactly, case-sensitive)
ADMIN_CODES = frozenset({
    "PREP WORK", "job-prep",
    "Permit Submittals", "PERMIT APPROVAL", "permit-submittals", "permit-prep",
    "emails", "TEAM MEETINGS", "meeting", "team-questions",
    "DRAWING REVIEW", "REVIEWER QUESTIONS", "UPDATING STANDARDS",
    "ESPO", "ESPO IT", "it-help",
    "Driving",
    "Potential Client/Project Prep", "TimeCard-Correction",
})

PREP_CODES = frozenset({"PREP WORK", "job-prep"})
PERMIT_CODES = frozenset({"Permit Submittals", "PERMIT APPROVAL", "permit-submittals", "permit-prep"})
DRIVING_CODE = "Driving"

# Structured project number, e.g. NCP-25-0123, DCS-24-3375
JOB_CODE_PATTERN = r"[A-Z]{2,4}-[0-9]{2}-[0-9]{3,5}"
DRAFTING_CODE_PATTERN = r"NCP-[0-9]{2}-[0-9]{3,5}"

# =============================================================================
# IRREGULARITY THRESHOLDS
# =============================================================================

HOURS_MISMATCH_TOLERANCE = float(os.environ.get("HOURS_MISMATCH_TOLERANCE", "0.26"))
HOURS_MISMATCH_HIGH = 1.0
LONG_DAY_HOURS = 14.0
EARLY_START_MINUTES = 5 * 60
LATE_END_MINUTES = 23 * 60
STREAK_LIMIT_DAYS = 10
IDENTICAL_RUN_DAYS = 5
IDENTICAL_TOLERANCE_HOURS = 0.01
HIGH_ADMIN_DAY_MIN_HOURS = 4.0
HIGH_ADMIN_DAY_SHARE = float(os.environ.get("HIGH_ADMIN_DAY_SHARE", "0.8"))
PREP_DAY_LIMIT_HOURS = 5.0

# =============================================================================
# REPORT CONFIGURATION
# =============================================================================

ALLOCATION_HEADERS = ["Date", "Week Of", "Day", "Total Hours", "Regular", "Overtime"]
WEEK_SUMMARY_HEADERS = ["Week Of", "Days", "Total Hours", "Regular", "Overtime"]
FLAG_HEADERS = ["Severity", "Category", "Date", "Detail"]
TOP_JOBS_LIMIT = 15
RECENT_DAYS_LIMIT = 30

# =============================================================================
# MS GRAPH CREDENTIALS (from environment)
# =============================================================================

GRAPH_TENANT_ID = os.environ.get("MICROSOFT_GRAPH_TENANT_ID", "")
GRAPH_APP_ID = os.environ.get("MICROSOFT_GRAPH_APP_ID", "")
GRAPH_CLIENT_SECRET = os.environ.get("MICROSOFT_GRAPH_CLIENT_SECRET", "")

# =============================================================================
# API CONFIGURATION
# =============================================================================

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"
