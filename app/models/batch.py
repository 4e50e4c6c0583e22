"""Pydantic models for the ``candidate_batches`` table."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.constants import BATCH_NAME_MAX_LENGTH, BATCH_NAME_MIN_LENGTH


class BatchCreateRequest(BaseModel):
    batch_name: str = Field(min_length=BATCH_NAME_MIN_LENGTH, max_length=BATCH_NAME_MAX_LENGTH)

    @field_validator("batch_name", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class CandidateBatch(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    partner_id: UUID
    batch_name: str
    created_at: datetime | None = None


class BatchCreated(BaseModel):
    batch_id: UUID
    batch_name: str
    created_at: datetime | None = None


class BatchSummary(BaseModel):
    """Batch with its candidate count and seat usage."""
    batch_id: UUID
    batch_name: str
    created_at: datetime | None = None
    candidate_count: int = 0
    seat_count: int = 0
    seats_assigned: int = 0
    available_seats: int = 0
    seat_active: bool = False
