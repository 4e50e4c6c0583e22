"""Partner-facing candidate endpoints.

All routes require a partner bearer token except ``accept-invite``, which
the candidate reaches from the invitation email.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.core.constants import DEFAULT_PAGE_SIZE
from app.core.errors import ValidationError
from app.core.responses import created, ok, paginated
from app.core.security import CurrentUser, partner_scope, require_partner
from app.dependencies import Container, get_container
from app.models.batch import BatchCreateRequest, BatchCreated
from app.models.candidate import CandidateCreateRequest
from app.models.partner_candidate import AcceptInviteRequest, AssignBatchRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_batch_id(raw: str | None) -> UUID | None:
    if raw is None or not raw.strip():
        return None
    try:
        return UUID(raw.strip())
    except ValueError as exc:
        raise ValidationError({"batch_id": ["Invalid batch id"]}) from exc


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------

@router.get("")
async def list_candidates(
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    user: CurrentUser = Depends(require_partner),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    result = container.onboarding.list_candidates(partner_scope(user), page, limit)
    return paginated(result.candidates, result.pagination, "Candidates retrieved")


@router.post("", status_code=201)
async def create_candidate(
    body: CandidateCreateRequest,
    user: CurrentUser = Depends(require_partner),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    result = container.onboarding.create_candidate(partner_scope(user), body)
    data = {**result.candidate.model_dump(), "warnings": result.warnings}
    return created(data, "Candidate created")


@router.post("/upload-csv")
async def upload_candidates_csv(
    file: UploadFile = File(...),
    batch_id: str | None = Form(None),
    user: CurrentUser = Depends(require_partner),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    content = await file.read()
    result = container.onboarding.upload_candidates_csv(
        partner_scope(user),
        _parse_batch_id(batch_id),
        file.filename,
        file.content_type,
        content,
    )
    return ok(result, "CSV processed")


@router.patch("/{candidate_id}/mark-paid")
async def mark_paid(
    candidate_id: UUID,
    user: CurrentUser = Depends(require_partner),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    link = container.links.mark_paid(partner_scope(user), candidate_id)
    return ok(link, "Candidate marked as paid")


@router.post("/{candidate_id}/accept-invite")
async def accept_invite(
    candidate_id: UUID,
    body: AcceptInviteRequest,
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    link = container.links.accept_candidate_invite(candidate_id, body.token)
    return ok(link, "Invite accepted")


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------

@router.get("/batches")
async def list_batches(
    user: CurrentUser = Depends(require_partner),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return ok(container.batches.list_batches(partner_scope(user)), "Batches retrieved")


@router.post("/batches", status_code=201)
async def create_batch(
    body: BatchCreateRequest,
    user: CurrentUser = Depends(require_partner),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    batch = container.onboarding.create_batch(partner_scope(user), body.batch_name)
    data = BatchCreated(batch_id=batch.id, batch_name=batch.batch_name, created_at=batch.created_at)
    return created(data, "Batch created")


@router.post("/batches/{batch_id}/assign")
async def assign_to_batch(
    batch_id: UUID,
    body: AssignBatchRequest,
    user: CurrentUser = Depends(require_partner),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    result = container.links.assign_to_batch(partner_scope(user), batch_id, body.candidate_ids)
    return ok(result, "Batch assignment processed")
