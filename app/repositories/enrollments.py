"""Exam enrollment persistence: interface and Supabase implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from supabase import Client

from app.core.errors import DuplicateRecordError
from app.db.supabase import is_unique_violation
from app.models.enrollment import ExamEnrollment, ExamEnrollmentCreate


class EnrollmentRepository(ABC):

    @abstractmethod
    def get(self, user_id: UUID, exam_id: UUID) -> ExamEnrollment | None: ...

    @abstractmethod
    def create(self, data: ExamEnrollmentCreate) -> ExamEnrollment:
        """Insert; raises ``DuplicateRecordError`` if the pair exists."""


class SupabaseEnrollmentRepository(EnrollmentRepository):
    table = "exam_enrollments"

    def __init__(self, client: Client) -> None:
        self._client = client

    def get(self, user_id: UUID, exam_id: UUID) -> ExamEnrollment | None:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("exam_id", str(exam_id))
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return ExamEnrollment(**rows[0]) if rows else None

    def create(self, data: ExamEnrollmentCreate) -> ExamEnrollment:
        try:
            result = (
                self._client.table(self.table)
                .insert(data.model_dump(mode="json"))
                .execute()
            )
        except Exception as exc:
            if is_unique_violation(exc):
                raise DuplicateRecordError(str(exc)) from exc
            raise
        return ExamEnrollment(**result.data[0])
