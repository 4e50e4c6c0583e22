"""Pydantic models for the ``seats`` table (the seat ledger)."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.enums import SessionsPerDay


class SeatCreate(BaseModel):
    """Admin payload recording purchased capacity for a partner batch."""
    partner_id: UUID
    batch_id: UUID
    seat_count: int = Field(ge=1)
    sessions_per_day: SessionsPerDay = SessionsPerDay.three
    start_date: date
    end_date: date
    auto_renew_interval_days: int = Field(default=30, ge=1)

    @model_validator(mode="after")
    def _check_window(self) -> "SeatCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class Seat(BaseModel):
    """Full seat record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    partner_id: UUID
    batch_id: UUID
    seat_count: int
    seats_assigned: int = 0
    sessions_per_day: SessionsPerDay = SessionsPerDay.three
    start_date: date | None = None
    end_date: date | None = None
    auto_renew_interval_days: int = 30
    is_active: bool = True
    created_at: datetime | None = None


class SeatView(Seat):
    """Seat plus its computed free capacity."""
    available_seats: int = 0
