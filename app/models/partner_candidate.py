"""Pydantic models for the ``partner_candidates`` link table."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import InviteStatus


class PartnerCandidateCreate(BaseModel):
    partner_id: UUID
    candidate_id: UUID
    batch_id: UUID | None = None
    is_paid_for: bool = False


class PartnerCandidate(BaseModel):
    """Join record between a partner and a candidate."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    partner_id: UUID
    candidate_id: UUID
    batch_id: UUID | None = None
    is_paid_for: bool = False
    invite_status: InviteStatus = InviteStatus.pending
    invite_sent_at: datetime | None = None
    invite_accepted_at: datetime | None = None
    created_at: datetime | None = None


class AcceptInviteRequest(BaseModel):
    token: str = Field(min_length=1)


class AssignBatchRequest(BaseModel):
    candidate_ids: list[UUID] = Field(min_length=1)


class AssignmentFailure(BaseModel):
    candidate_id: UUID
    error: str


class BatchAssignmentResult(BaseModel):
    batch_id: UUID
    succeeded: int = 0
    failed: int = 0
    succeeded_ids: list[UUID] = []
    failures: list[AssignmentFailure] = []
