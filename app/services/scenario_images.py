"""Periodic generation of illustration images for exam scenarios.

Each run picks scenarios that have an ``image_prompt`` but no
``image_url``, asks the image model for a PNG, uploads it to object
storage and stores the public URL.  One failing scenario does not stop
the run.
"""

from __future__ import annotations

import base64
import logging
import time
from abc import ABC, abstractmethod
from typing import Any
from uuid import uuid4

import httpx

from app.core.config import Settings
from app.core.constants import SCENARIO_IMAGE_PREFIX
from app.repositories.exams import ExamRepository
from app.scheduler.lock import acquire_job_lock, release_job_lock
from app.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class ImageGenerator(ABC):

    @abstractmethod
    def generate(self, prompt: str) -> bytes:
        """Return PNG bytes for ``prompt``."""


class GeminiImageGenerator(ImageGenerator):
    """Image generation through the Gemini ``generateContent`` REST endpoint."""

    def __init__(self, settings: Settings, timeout: float = 90.0) -> None:
        self._settings = settings
        self._timeout = timeout

    def generate(self, prompt: str) -> bytes:
        if not self._settings.GEMINI_API_KEY:
            raise RuntimeError("GEMINI_API_KEY is not configured")

        response = httpx.post(
            f"{GEMINI_API_BASE}/{self._settings.GEMINI_IMAGE_MODEL}:generateContent",
            params={"key": self._settings.GEMINI_API_KEY},
            json={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
            },
            timeout=self._timeout,
        )
        response.raise_for_status()
        return self._extract_image(response.json())

    @staticmethod
    def _extract_image(payload: dict[str, Any]) -> bytes:
        for candidate in payload.get("candidates", []):
            for part in candidate.get("content", {}).get("parts", []):
                inline = part.get("inlineData") or part.get("inline_data")
                if inline and inline.get("data"):
                    return base64.b64decode(inline["data"])
        raise ValueError("Image model returned no image data")


class ScenarioImageJob:

    def __init__(
        self,
        exams: ExamRepository,
        generator: ImageGenerator,
        storage: ObjectStorage,
        settings: Settings,
    ) -> None:
        self._exams = exams
        self._generator = generator
        self._storage = storage
        self._settings = settings

    def run(self, trigger: str = "scheduler") -> dict[str, Any]:
        run_id = uuid4()
        if not acquire_job_lock():
            logger.warning(
                "Scenario image job already running, skipping trigger",
                extra={"run_id": str(run_id), "trigger": trigger},
            )
            return {"status": "skipped", "reason": "job_already_running"}

        start_time = time.time()
        processed = 0
        failed = 0
        try:
            scenarios = self._exams.list_scenarios_missing_images(
                self._settings.IMAGE_JOB_BATCH_SIZE
            )
            for scenario in scenarios:
                try:
                    image = self._generator.generate(scenario.image_prompt or scenario.title)
                    key = f"{SCENARIO_IMAGE_PREFIX}/{scenario.exam_id}/{scenario.id}.png"
                    url = self._storage.upload(key, image, "image/png")
                    self._exams.set_scenario_image(scenario.id, url)
                    processed += 1
                except Exception as exc:
                    failed += 1
                    logger.error(
                        "scenario_image_failed",
                        extra={
                            "run_id": str(run_id),
                            "scenario_id": str(scenario.id),
                            "error": str(exc),
                        },
                    )
        finally:
            release_job_lock()

        status = "success" if failed == 0 else ("partial" if processed else "failed")
        logger.info(
            "scenario_image_job_complete",
            extra={
                "run_id": str(run_id),
                "trigger": trigger,
                "status": status,
                "processed": processed,
                "failed": failed,
                "duration_ms": int((time.time() - start_time) * 1000),
            },
        )
        return {"status": status, "processed": processed, "failed": failed}
