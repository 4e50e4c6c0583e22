"""Candidate self-enrollment into exams."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from app.core.responses import created
from app.core.security import CurrentUser, get_current_user
from app.dependencies import Container, get_container
from app.models.enrollment import JoinExamRequest

router = APIRouter()


@router.post("/{exam_id}/join", status_code=201)
async def join_exam(
    exam_id: UUID,
    body: JoinExamRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    body = body or JoinExamRequest()
    result = container.enrollments.join_exam(
        user.user_id, exam_id, body.exam_date, body.exam_practice_frequency
    )
    return created(result, "Exam joined")
