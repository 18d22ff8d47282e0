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
DB_PATH = Path(os.environ.get("TIME_TRACKER_DB_PATH", PROJECT_ROOT / "data" / "db" / "time-tracker.db"))
OUTPUT_DIR = PROJECT_ROOT / "output"

# =============================================================================
# GOOGLE CALENDAR CONFIGURATION
# =============================================================================

GOOGLE_CALENDAR_API_BASE_URL = os.environ.get(
    "GOOGLE_CALENDAR_API_BASE_URL", "https://www.googleapis.com/calendar/v3"
)
EVENTS_PAGE_SIZE = int(os.environ.get("EVENTS_PAGE_SIZE", "250"))
# Upper bound on pages walked per calendar (guards against nextPageToken loops)
MAX_PAGES_PER_CALENDAR = int(os.environ.get("MAX_PAGES_PER_CALENDAR", "100"))
REQUEST_TIMEOUT_SECONDS = float(os.environ.get("REQUEST_TIMEOUT_SECONDS", "30"))
FALLBACK_TIMEZONE = "UTC"

# Access token used by the command line scripts (the API reads it per request)
GOOGLE_ACCESS_TOKEN = os.environ.get("GOOGLE_ACCESS_TOKEN", "")

# =============================================================================
# CATEGORY STORAGE
# =============================================================================

CATEGORIES_STORAGE_KEY = "time-tracker-categories"
ASSIGNMENTS_STORAGE_KEY = "time-tracker-assignments"

# =============================================================================
# DISPLAY CONFIGURATION
# =============================================================================

DEFAULT_EVENT_COLOR = "#4285f4"
DEFAULT_EVENT_TEXT_COLOR = "#FFFFFF"
ALL_DAY_LABEL = "All day"

SUMMARY_HEADERS = ["Category", "Events", "Hours"]
DETAIL_HEADERS = ["Date", "Time", "Calendar", "Event", "Hours", "Category"]
UNCATEGORIZED_LABEL = "Uncategorized"
MIN_TABLE_ROWS = 12  # Minimum rows for better display in Numbers when few events

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# =============================================================================
# API CONFIGURATION
# =============================================================================

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"
