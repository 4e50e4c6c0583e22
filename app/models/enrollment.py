"""Pydantic models for the ``exam_enrollments`` table."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ExamEnrollmentCreate(BaseModel):
    user_id: UUID
    exam_id: UUID
    exam_date: date
    exam_practice_frequency: str


class ExamEnrollment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    exam_id: UUID
    exam_date: date
    exam_practice_frequency: str
    joined_at: datetime | None = None


class JoinExamRequest(BaseModel):
    """Body of ``POST /exams/{exam_id}/join``; omitted fields use defaults."""
    exam_date: date | None = None
    exam_practice_frequency: str | None = None


class EnrollmentResult(BaseModel):
    enrollment: ExamEnrollment
    bonus_granted: bool = False
    warnings: list[str] = []
