"""Application constants.

Contains CSV import rules, validation limits, error messages and storage
paths shared across services.
"""

import re

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
EMAIL_PATTERN: re.Pattern[str] = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

NAME_MIN_LENGTH: int = 2
NAME_MAX_LENGTH: int = 50
BATCH_NAME_MIN_LENGTH: int = 2
BATCH_NAME_MAX_LENGTH: int = 100

# ---------------------------------------------------------------------------
# CSV import
# ---------------------------------------------------------------------------
CSV_REQUIRED_COLUMNS: tuple[str, ...] = ("firstname", "lastname", "email")
CSV_UPLOAD_PREFIX: str = "candidates/csv-uploads"

CSV_ERROR_MISSING_FIELDS = "Missing required fields (firstname, lastname, email)"
CSV_ERROR_INVALID_EMAIL = "Invalid email format"
CSV_ERROR_DUPLICATE_IN_FILE = "Duplicate email in CSV file"
CSV_ERROR_ALREADY_IN_BATCH = "Candidate already exists in this batch"
CSV_ERROR_ALREADY_WITH_PARTNER = "Candidate already exists for this partner"

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100

# ---------------------------------------------------------------------------
# Scenario images
# ---------------------------------------------------------------------------
SCENARIO_IMAGE_PREFIX: str = "exam-scenarios/images"
