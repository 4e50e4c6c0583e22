"""Composition root.

``build_container`` wires repositories, collaborators and services once,
by constructor injection.  Routers receive the container through
``Depends(get_container)``; tests replace it with
``app.dependency_overrides[get_container]``.
"""

from __future__ import annotations

from dataclasses import dataclass

from supabase import Client

from app.core.config import Settings, settings
from app.db.supabase import get_supabase
from app.models.enums import SeatReservationMode
from app.repositories.batches import BatchRepository, SupabaseBatchRepository
from app.repositories.enrollments import EnrollmentRepository, SupabaseEnrollmentRepository
from app.repositories.exams import ExamRepository, SupabaseExamRepository
from app.repositories.partner_candidates import (
    PartnerCandidateRepository,
    SupabasePartnerCandidateRepository,
)
from app.repositories.partners import PartnerRepository, SupabasePartnerRepository
from app.repositories.seats import SeatRepository, SupabaseSeatRepository
from app.repositories.users import SupabaseUserRepository, UserRepository
from app.services.batches import BatchService
from app.services.enrollment import ExamEnrollmentRegistry
from app.services.invitations import InvitationService
from app.services.notifications import EmailSender, PostmarkEmailSender
from app.services.onboarding import CandidateOnboardingWorkflow
from app.services.partner_candidates import PartnerCandidateLinks
from app.services.scenario_images import (
    GeminiImageGenerator,
    ImageGenerator,
    ScenarioImageJob,
)
from app.services.seat_ledger import SeatLedger
from app.services.storage import ObjectStorage, SupabaseObjectStorage


@dataclass
class Container:
    settings: Settings
    ledger: SeatLedger
    batches: BatchService
    enrollments: ExamEnrollmentRegistry
    invitations: InvitationService
    links: PartnerCandidateLinks
    onboarding: CandidateOnboardingWorkflow
    image_job: ScenarioImageJob


def assemble(
    app_settings: Settings,
    users: UserRepository,
    partners: PartnerRepository,
    batches: BatchRepository,
    seats: SeatRepository,
    links: PartnerCandidateRepository,
    enrollments: EnrollmentRepository,
    exams: ExamRepository,
    email: EmailSender,
    storage: ObjectStorage,
    image_generator: ImageGenerator,
) -> Container:
    """Wire services from already-built repositories and collaborators."""
    ledger = SeatLedger(
        seats, batches, SeatReservationMode(app_settings.SEAT_RESERVATION_MODE)
    )
    batch_service = BatchService(batches, seats, links)
    registry = ExamEnrollmentRegistry(enrollments, users, exams, email, app_settings)
    invitations = InvitationService(users, email, app_settings)
    return Container(
        settings=app_settings,
        ledger=ledger,
        batches=batch_service,
        enrollments=registry,
        invitations=invitations,
        links=PartnerCandidateLinks(links, batch_service, ledger, invitations),
        onboarding=CandidateOnboardingWorkflow(
            users=users,
            partners=partners,
            links=links,
            batches=batch_service,
            ledger=ledger,
            enrollments=registry,
            invitations=invitations,
            storage=storage,
            settings=app_settings,
        ),
        image_job=ScenarioImageJob(exams, image_generator, storage, app_settings),
    )


def build_container(client: Client, app_settings: Settings) -> Container:
    """Production wiring backed by Supabase, Postmark and Gemini."""
    storage = SupabaseObjectStorage(client, app_settings.STORAGE_BUCKET)
    return assemble(
        app_settings,
        users=SupabaseUserRepository(client),
        partners=SupabasePartnerRepository(client),
        batches=SupabaseBatchRepository(client),
        seats=SupabaseSeatRepository(client),
        links=SupabasePartnerCandidateRepository(client),
        enrollments=SupabaseEnrollmentRepository(client),
        exams=SupabaseExamRepository(client),
        email=PostmarkEmailSender(app_settings),
        storage=storage,
        image_generator=GeminiImageGenerator(app_settings),
    )


_container: Container | None = None


def get_container() -> Container:
    """Return the process-wide container, building it on first use."""
    global _container
    if _container is None:
        _container = build_container(get_supabase(), settings)
    return _container
