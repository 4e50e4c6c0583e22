"""Pydantic models for ``exams`` and ``exam_scenarios``."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Exam(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str = ""
    exam_code: str = ""
    status: str = "active"


class ExamScenario(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    exam_id: UUID
    title: str
    image_prompt: str | None = None
    image_url: str | None = None
