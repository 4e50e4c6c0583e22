"""Pydantic model for the ``partners`` table."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.enums import PartnerStatus


class Partner(BaseModel):
    """Partner organization.  ``exam_types`` holds the exam ids candidates
    are auto-enrolled into."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID | None = None
    organization_name: str = ""
    exam_types: list[UUID] = []
    partner_status: PartnerStatus = PartnerStatus.pending
    has_added_candidates: bool = False
    first_candidate_added_at: datetime | None = None
