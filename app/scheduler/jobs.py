"""APScheduler job definitions and scheduler management.

Registers the scenario image job on a ``BackgroundScheduler`` with an
``IntervalTrigger`` and exposes start/shutdown/status helpers for the
FastAPI lifespan.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.dependencies import get_container

logger = logging.getLogger(__name__)

IMAGE_JOB_ID = "create_scenario_images"

scheduler = BackgroundScheduler()


def _scenario_image_job() -> None:
    """Wrapper that APScheduler calls on each interval tick."""
    get_container().image_job.run(trigger="scheduler")


def start_scheduler() -> None:
    """Register the image job and start the scheduler, unless disabled."""
    if not settings.SCHEDULER_ENABLED:
        logger.info("scheduler_disabled")
        return
    scheduler.add_job(
        _scenario_image_job,
        IntervalTrigger(minutes=settings.IMAGE_JOB_INTERVAL_MINUTES),
        id=IMAGE_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        "scheduler_started",
        extra={"interval_minutes": settings.IMAGE_JOB_INTERVAL_MINUTES},
    )


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")


def is_scheduler_running() -> bool:
    return scheduler.running
