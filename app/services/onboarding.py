"""Candidate onboarding workflow.

Single and bulk (CSV) paths share the same rules:

1. A batch must belong to the calling partner.
2. A candidate may not be linked twice to the same batch, nor twice to the
   same partner without a batch.
3. A candidate is paid and placed in the batch only when a seat can be
   reserved for them; otherwise they are created unpaid with no batch.
4. If persistence fails after a reservation, the seats are released.
5. Exam auto-enrollment, invitation emails and the partner's onboarding
   flag run as post-commit tasks whose failures become warnings.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from uuid import UUID

from app.core.config import Settings
from app.core.constants import (
    CSV_ERROR_ALREADY_IN_BATCH,
    CSV_ERROR_ALREADY_WITH_PARTNER,
    CSV_UPLOAD_PREFIX,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
)
from app.core.errors import ApiError, DuplicateRecordError, NotFoundError, ValidationError
from app.models.batch import CandidateBatch
from app.models.candidate import (
    CandidateCreateRequest,
    CandidateCreationResult,
    CandidateListItem,
    CandidatePage,
    CreatedCandidate,
    CsvRowError,
    CsvUploadResult,
    Pagination,
)
from app.models.partner import Partner
from app.models.partner_candidate import PartnerCandidate, PartnerCandidateCreate
from app.models.seat import Seat
from app.models.user import User, UserCreate
from app.repositories.partner_candidates import PartnerCandidateRepository
from app.repositories.partners import PartnerRepository
from app.repositories.users import UserRepository
from app.services.batches import BatchService
from app.services.csv_import import CsvCandidateRow, is_csv_upload, parse_candidates_csv
from app.services.enrollment import ExamEnrollmentRegistry
from app.services.invitations import InvitationService
from app.services.post_commit import PostCommitTasks
from app.services.seat_ledger import SeatLedger
from app.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")
_RESERVE_ATTEMPTS = 3


def linked_reason(
    links: list[PartnerCandidate], batch_id: UUID | None
) -> str | None:
    """Why a candidate with ``links`` to this partner cannot be added again."""
    if batch_id is not None:
        if any(link.batch_id == batch_id for link in links):
            return CSV_ERROR_ALREADY_IN_BATCH
        return None
    return CSV_ERROR_ALREADY_WITH_PARTNER if links else None


def _created(user: User, link: PartnerCandidate) -> CreatedCandidate:
    return CreatedCandidate(
        candidate_id=user.id,
        firstname=user.firstname,
        lastname=user.lastname,
        email=user.email,
        batch_id=link.batch_id,
        is_paid_for=link.is_paid_for,
    )


class CandidateOnboardingWorkflow:

    def __init__(
        self,
        users: UserRepository,
        partners: PartnerRepository,
        links: PartnerCandidateRepository,
        batches: BatchService,
        ledger: SeatLedger,
        enrollments: ExamEnrollmentRegistry,
        invitations: InvitationService,
        storage: ObjectStorage,
        settings: Settings,
    ) -> None:
        self._users = users
        self._partners = partners
        self._links = links
        self._batches = batches
        self._ledger = ledger
        self._enrollments = enrollments
        self._invitations = invitations
        self._storage = storage
        self._settings = settings

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def create_batch(self, partner_id: UUID, batch_name: str) -> CandidateBatch:
        self._require_partner(partner_id)
        return self._batches.create_batch(partner_id, batch_name)

    def _require_partner(self, partner_id: UUID) -> Partner:
        partner = self._partners.get_by_id(partner_id)
        if partner is None:
            raise NotFoundError("Partner")
        return partner

    # ------------------------------------------------------------------
    # Single candidate
    # ------------------------------------------------------------------

    def create_candidate(
        self, partner_id: UUID, request: CandidateCreateRequest
    ) -> CandidateCreationResult:
        partner = self._require_partner(partner_id)
        batch_id = request.batch_id
        if batch_id is not None:
            self._batches.get_partner_batch(partner_id, batch_id)

        existing = self._users.get_by_email(request.email)
        if existing is not None:
            reason = linked_reason(
                self._links.list_for_candidates(partner_id, [existing.id]), batch_id
            )
            if reason:
                raise ValidationError({"email": [reason]}, message=reason)

        seat_id: UUID | None = None
        if batch_id is not None:
            seat = self._ledger.get_active_seat(partner_id, batch_id)
            if seat is not None and self._ledger.available_seats(seat) >= 1:
                if self._ledger.reserve(seat.id, 1):
                    seat_id = seat.id
            if seat_id is None:
                logger.info(
                    "candidate_unpaid_no_seat",
                    extra={"partner_id": str(partner_id), "batch_id": str(batch_id)},
                )

        try:
            user = existing or self._users.create(
                UserCreate(
                    firstname=request.firstname,
                    lastname=request.lastname,
                    email=request.email,
                )
            )
            link = self._links.create_many(
                [
                    PartnerCandidateCreate(
                        partner_id=partner_id,
                        candidate_id=user.id,
                        batch_id=batch_id if seat_id else None,
                        is_paid_for=seat_id is not None,
                    )
                ]
            )[0]
        except Exception as exc:
            if seat_id is not None:
                self._ledger.release_quietly(seat_id, 1)
            if isinstance(exc, DuplicateRecordError):
                raise ValidationError(
                    {"email": [CSV_ERROR_ALREADY_WITH_PARTNER]},
                    message=CSV_ERROR_ALREADY_WITH_PARTNER,
                ) from exc
            raise

        logger.info(
            "candidate_created",
            extra={
                "partner_id": str(partner_id),
                "candidate_id": str(user.id),
                "batch_id": str(link.batch_id) if link.batch_id else None,
                "is_paid_for": link.is_paid_for,
            },
        )

        tasks = PostCommitTasks(context={"partner_id": str(partner_id), "candidate_id": str(user.id)})
        self._add_partner_flag_task(tasks, partner)
        tasks.add(
            "exam_enrollment",
            lambda: self._enrollments.enroll_in_exams(user, list(partner.exam_types)),
        )
        tasks.add("invitation_email", lambda: self._invitations.invite(user, partner))

        return CandidateCreationResult(candidate=_created(user, link), warnings=tasks.run())

    def _add_partner_flag_task(self, tasks: PostCommitTasks, partner: Partner) -> None:
        if not partner.has_added_candidates:
            tasks.add(
                "partner_first_candidate_flag",
                lambda: self._partners.mark_candidate_added(partner.id),
            )

    # ------------------------------------------------------------------
    # Bulk CSV
    # ------------------------------------------------------------------

    def upload_candidates_csv(
        self,
        partner_id: UUID,
        batch_id: UUID | None,
        filename: str | None,
        content_type: str | None,
        content: bytes,
    ) -> CsvUploadResult:
        if not is_csv_upload(filename, content_type):
            raise ValidationError({"file": ["Only CSV files are allowed"]})
        if not content.strip():
            raise ValidationError({"file": ["CSV file is empty"]})

        partner = self._require_partner(partner_id)
        if batch_id is not None:
            self._batches.get_partner_batch(partner_id, batch_id)

        parsed = parse_candidates_csv(content)
        self._archive_upload(partner_id, filename, content_type, content)

        errors = list(parsed.errors)
        rows = self._drop_linked_rows(partner_id, batch_id, parsed.rows, errors)

        seat, reserved = self._reserve_rows(partner_id, batch_id, len(rows))
        paid_rows, unpaid_rows = rows[:reserved], rows[reserved:]

        created: list[tuple[User, PartnerCandidate]] = []
        if paid_rows and seat is not None:
            try:
                created.extend(self._create_group(partner_id, paid_rows, batch_id))
            except Exception as exc:
                self._fail_group(paid_rows, errors, exc)
                self._ledger.release_quietly(seat.id, len(paid_rows))
        if unpaid_rows:
            try:
                created.extend(self._create_group(partner_id, unpaid_rows, None))
            except Exception as exc:
                self._fail_group(unpaid_rows, errors, exc)

        created_users = [user for user, _ in created]
        warnings: list[str] = []
        if created_users:
            tasks = PostCommitTasks(context={"partner_id": str(partner_id)})
            self._add_partner_flag_task(tasks, partner)
            tasks.add("exam_enrollment", lambda: self._bulk_enroll(created_users, partner))
            tasks.add(
                "invitation_email",
                lambda: self._invitations.invite_many(created_users, partner),
            )
            warnings = tasks.run()

        errors.sort(key=lambda e: e.row)
        result = CsvUploadResult(
            total_rows=parsed.total_rows,
            successful=len(created),
            failed=len(errors),
            errors=errors,
            candidates=[_created(user, link) for user, link in created],
            warnings=warnings,
        )
        logger.info(
            "csv_upload_complete",
            extra={
                "partner_id": str(partner_id),
                "batch_id": str(batch_id) if batch_id else None,
                "total_rows": result.total_rows,
                "successful": result.successful,
                "failed": result.failed,
                "paid": sum(1 for _, link in created if link.is_paid_for),
            },
        )
        return result

    def _archive_upload(
        self,
        partner_id: UUID,
        filename: str | None,
        content_type: str | None,
        content: bytes,
    ) -> str:
        safe_name = _UNSAFE_FILENAME.sub("_", filename or "candidates.csv")
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        key = f"{CSV_UPLOAD_PREFIX}/{partner_id}/{stamp}-{safe_name}"
        try:
            return self._storage.upload(key, content, content_type or "text/csv")
        except Exception as exc:
            logger.error(
                "csv_archive_failed",
                extra={"partner_id": str(partner_id), "key": key, "error": str(exc)},
                exc_info=True,
            )
            raise ApiError(502, "Failed to store uploaded CSV file") from exc

    def _drop_linked_rows(
        self,
        partner_id: UUID,
        batch_id: UUID | None,
        rows: list[CsvCandidateRow],
        errors: list[CsvRowError],
    ) -> list[CsvCandidateRow]:
        existing = {user.email: user for user in self._users.list_by_emails([r.email for r in rows])}
        links_by_candidate: dict[UUID, list[PartnerCandidate]] = {}
        for link in self._links.list_for_candidates(partner_id, [u.id for u in existing.values()]):
            links_by_candidate.setdefault(link.candidate_id, []).append(link)

        kept: list[CsvCandidateRow] = []
        for row in rows:
            user = existing.get(row.email)
            reason = linked_reason(links_by_candidate.get(user.id, []), batch_id) if user else None
            if reason:
                errors.append(CsvRowError(row=row.row, email=row.email, error=reason))
            else:
                kept.append(row)
        return kept

    def _reserve_rows(
        self, partner_id: UUID, batch_id: UUID | None, wanted: int
    ) -> tuple[Seat | None, int]:
        """Reserve seats for as many of ``wanted`` rows as the batch allows.

        A refused reservation means another request took seats since our
        read; re-read the seat and retry with the smaller count.
        """
        if batch_id is None or wanted == 0:
            return None, 0
        seat = self._ledger.get_active_seat(partner_id, batch_id)
        for _ in range(_RESERVE_ATTEMPTS):
            count = min(wanted, self._ledger.available_seats(seat))
            if seat is None or count == 0:
                return seat, 0
            if self._ledger.reserve(seat.id, count):
                return seat, count
            logger.warning(
                "csv_seat_reservation_refused",
                extra={"partner_id": str(partner_id), "requested": count},
            )
            seat = self._ledger.get_active_seat(partner_id, batch_id)
        return seat, 0

    def _create_group(
        self,
        partner_id: UUID,
        rows: list[CsvCandidateRow],
        batch_id: UUID | None,
    ) -> list[tuple[User, PartnerCandidate]]:
        emails = [row.email for row in rows]
        users = {user.email: user for user in self._users.list_by_emails(emails)}
        new_users = self._users.create_many(
            [
                UserCreate(firstname=row.firstname, lastname=row.lastname, email=row.email)
                for row in rows
                if row.email not in users
            ]
        )
        users.update({user.email: user for user in new_users})

        links = self._links.create_many(
            [
                PartnerCandidateCreate(
                    partner_id=partner_id,
                    candidate_id=users[email].id,
                    batch_id=batch_id,
                    is_paid_for=batch_id is not None,
                )
                for email in emails
            ]
        )
        by_candidate = {link.candidate_id: link for link in links}
        return [(users[email], by_candidate[users[email].id]) for email in emails]

    def _fail_group(
        self, rows: list[CsvCandidateRow], errors: list[CsvRowError], exc: Exception
    ) -> None:
        logger.error(
            "csv_group_create_failed",
            extra={"rows": [row.row for row in rows], "error": str(exc)},
            exc_info=True,
        )
        for row in rows:
            errors.append(
                CsvRowError(row=row.row, email=row.email, error=f"Failed to create candidate: {exc}")
            )

    def _bulk_enroll(self, users: list[User], partner: Partner) -> list[str]:
        warnings: list[str] = []
        for user in users:
            warnings.extend(self._enrollments.enroll_in_exams(user, list(partner.exam_types)))
        return warnings

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_candidates(
        self, partner_id: UUID, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> CandidatePage:
        page = max(1, page)
        limit = min(max(1, limit), MAX_PAGE_SIZE)

        links, total = self._links.list_page(partner_id, (page - 1) * limit, limit)
        users = {user.id: user for user in self._users.list_by_ids([l.candidate_id for l in links])}
        batch_names = {
            summary.batch_id: summary.batch_name
            for summary in self._batches.list_batches(partner_id)
        }

        items: list[CandidateListItem] = []
        for link in links:
            user = users.get(link.candidate_id)
            if user is None:
                continue
            items.append(
                CandidateListItem(
                    candidate_id=user.id,
                    firstname=user.firstname,
                    lastname=user.lastname,
                    email=user.email,
                    batch_id=link.batch_id,
                    batch_name=batch_names.get(link.batch_id) if link.batch_id else None,
                    is_paid_for=link.is_paid_for,
                    invite_status=link.invite_status,
                    invite_sent_at=link.invite_sent_at,
                    invite_accepted_at=link.invite_accepted_at,
                )
            )

        total_pages = math.ceil(total / limit) if total else 0
        return CandidatePage(
            candidates=items,
            pagination=Pagination(
                current_page=page,
                per_page=limit,
                total=total,
                total_pages=total_pages,
                has_next=page < total_pages,
                has_previous=page > 1,
            ),
        )
