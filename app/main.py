"""FastAPI application entry point.

Wires logging, the JSON error handlers, CORS, the scheduler lifecycle and
the versioned routers.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.routers import candidates, exams, health, seats
from app.scheduler.jobs import shutdown_scheduler, start_scheduler

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _cors_origins(raw: str) -> list[str]:
    """Split a comma-separated ``ALLOWED_ORIGINS`` value; ``*`` allows all."""
    raw = raw.strip()
    if raw == "*":
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    logger.info("application_startup", extra={"environment": settings.ENVIRONMENT})
    start_scheduler()
    yield
    shutdown_scheduler()
    logger.info("application_shutdown")


app = FastAPI(
    title="Partner Onboarding API",
    description="Candidate onboarding, seat ledger and exam enrollment for exam-prep partners",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(settings.ALLOWED_ORIGINS),
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(health.router, tags=["Health"])
app.include_router(candidates.router, prefix=f"{API_PREFIX}/candidates", tags=["Candidates"])
app.include_router(seats.router, prefix=f"{API_PREFIX}/seats", tags=["Seats"])
app.include_router(seats.admin_router, prefix=f"{API_PREFIX}/admin/seats", tags=["Admin"])
app.include_router(exams.router, prefix=f"{API_PREFIX}/exams", tags=["Exams"])
