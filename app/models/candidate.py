"""Request and result models for candidate onboarding.

``CandidateCreationResult`` and ``CsvUploadResult`` carry a ``warnings``
list: the candidate rows are committed even when a post-commit task
(exam enrollment, invitation email, partner flag) fails.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.constants import EMAIL_PATTERN, NAME_MAX_LENGTH, NAME_MIN_LENGTH
from app.models.enums import InviteStatus


def normalize_email(value: str) -> str:
    return value.strip().lower()


class CandidateCreateRequest(BaseModel):
    batch_id: UUID | None = None
    firstname: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    lastname: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    email: str

    @field_validator("firstname", "lastname", mode="before")
    @classmethod
    def _strip_names(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        email = normalize_email(value)
        if not EMAIL_PATTERN.match(email):
            raise ValueError("Invalid email format")
        return email


class CreatedCandidate(BaseModel):
    candidate_id: UUID
    firstname: str
    lastname: str
    email: str
    batch_id: UUID | None = None
    is_paid_for: bool = False


class CandidateCreationResult(BaseModel):
    candidate: CreatedCandidate
    warnings: list[str] = []


class CsvRowError(BaseModel):
    row: int
    email: str | None = None
    error: str


class CsvUploadResult(BaseModel):
    """Outcome of a bulk upload; ``total_rows == successful + failed``."""
    total_rows: int = 0
    successful: int = 0
    failed: int = 0
    errors: list[CsvRowError] = []
    candidates: list[CreatedCandidate] = []
    warnings: list[str] = []


class CandidateListItem(BaseModel):
    candidate_id: UUID
    firstname: str
    lastname: str
    email: str
    batch_id: UUID | None = None
    batch_name: str | None = None
    is_paid_for: bool = False
    invite_status: InviteStatus = InviteStatus.pending
    invite_sent_at: datetime | None = None
    invite_accepted_at: datetime | None = None


class Pagination(BaseModel):
    current_page: int
    per_page: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


class CandidatePage(BaseModel):
    candidates: list[CandidateListItem] = []
    pagination: Pagination
