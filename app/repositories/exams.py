"""Exam and scenario persistence: interface and Supabase implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from supabase import Client

from app.models.exam import Exam, ExamScenario


class ExamRepository(ABC):

    @abstractmethod
    def get_by_id(self, exam_id: UUID) -> Exam | None: ...

    @abstractmethod
    def list_scenarios_missing_images(self, limit: int) -> list[ExamScenario]: ...

    @abstractmethod
    def set_scenario_image(self, scenario_id: UUID, image_url: str) -> None: ...


class SupabaseExamRepository(ExamRepository):

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_id(self, exam_id: UUID) -> Exam | None:
        result = (
            self._client.table("exams")
            .select("*")
            .eq("id", str(exam_id))
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return Exam(**rows[0]) if rows else None

    def list_scenarios_missing_images(self, limit: int) -> list[ExamScenario]:
        result = (
            self._client.table("exam_scenarios")
            .select("*")
            .is_("image_url", "null")
            .not_.is_("image_prompt", "null")
            .limit(limit)
            .execute()
        )
        return [ExamScenario(**row) for row in result.data or []]

    def set_scenario_image(self, scenario_id: UUID, image_url: str) -> None:
        self._client.table("exam_scenarios").update({"image_url": image_url}).eq(
            "id", str(scenario_id)
        ).execute()
