"""Partner-candidate link operations: payment flag, invite acceptance and
batch assignment.

Invite state machine::

    pending --accept--> accepted
    pending --(admin)--> expired

Accepting from ``accepted`` or ``expired`` raises ``InviteStateError`` and
leaves the link untouched.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from app.core.constants import CSV_ERROR_ALREADY_IN_BATCH
from app.core.errors import ApiError, InviteStateError, NotFoundError
from app.models.enums import InviteStatus
from app.models.partner_candidate import (
    AssignmentFailure,
    BatchAssignmentResult,
    PartnerCandidate,
)
from app.repositories.partner_candidates import PartnerCandidateRepository
from app.services.batches import BatchService
from app.services.invitations import InvitationService
from app.services.seat_ledger import SeatLedger

logger = logging.getLogger(__name__)

ALREADY_ASSIGNED = "already assigned to a batch"
NOT_FOUND_FOR_PARTNER = "Candidate not found for this partner"


def _ensure_pending(link: PartnerCandidate) -> None:
    if link.invite_status == InviteStatus.accepted:
        raise InviteStateError("Invite already accepted")
    if link.invite_status == InviteStatus.expired:
        raise InviteStateError("Invite has expired")


class PartnerCandidateLinks:

    def __init__(
        self,
        links: PartnerCandidateRepository,
        batches: BatchService,
        ledger: SeatLedger,
        invitations: InvitationService,
    ) -> None:
        self._links = links
        self._batches = batches
        self._ledger = ledger
        self._invitations = invitations

    def mark_paid(self, partner_id: UUID, candidate_id: UUID) -> PartnerCandidate:
        """Set ``is_paid_for``.  Seat counters are the caller's concern."""
        updated = self._links.mark_paid(partner_id, candidate_id)
        if not updated:
            raise NotFoundError("Candidate")
        logger.info(
            "candidate_marked_paid",
            extra={"partner_id": str(partner_id), "candidate_id": str(candidate_id)},
        )
        return updated[0]

    def accept_invite(self, link_id: UUID) -> PartnerCandidate:
        link = self._links.get_by_id(link_id)
        if link is None:
            raise NotFoundError("Invite")
        _ensure_pending(link)

        accepted = self._links.mark_accepted(link.id, datetime.now(timezone.utc))
        if accepted is None:
            # State changed between the read and the conditional update
            current = self._links.get_by_id(link_id)
            if current is not None:
                _ensure_pending(current)
            raise InviteStateError("Invite is no longer pending")

        logger.info(
            "invite_accepted",
            extra={"link_id": str(link.id), "candidate_id": str(link.candidate_id)},
        )
        return accepted

    def accept_candidate_invite(self, candidate_id: UUID, token: str) -> PartnerCandidate:
        """Public acceptance: state check, then token check, then transition.

        The candidate holds one invitation token at a time (the latest one
        sent), so a valid token accepts every pending link for the
        candidate, whichever partner or batch issued it.  Returns the most
        recently invited of the accepted links.
        """
        links = self._links.list_for_candidate(candidate_id)
        if not links:
            raise NotFoundError("Invite")
        pending = [link for link in links if link.invite_status == InviteStatus.pending]
        if not pending:
            _ensure_pending(links[0])

        self._invitations.verify(candidate_id, token)
        accepted = [self.accept_invite(link.id) for link in pending]
        self._invitations.consume(candidate_id)
        return accepted[0]

    def assign_to_batch(
        self,
        partner_id: UUID,
        batch_id: UUID,
        candidate_ids: list[UUID],
    ) -> BatchAssignmentResult:
        """Move unassigned candidates into ``batch_id``, reserving one seat each.

        Candidates that already sit in a batch are reported as failures;
        assignment is one-way.  Raises ``ApiError(400)`` when the batch has
        fewer free seats than eligible candidates.
        """
        self._batches.get_partner_batch(partner_id, batch_id)
        requested = list(dict.fromkeys(candidate_ids))
        result = BatchAssignmentResult(batch_id=batch_id)

        by_candidate: dict[UUID, list[PartnerCandidate]] = {}
        for link in self._links.list_for_candidates(partner_id, requested):
            by_candidate.setdefault(link.candidate_id, []).append(link)

        eligible: dict[UUID, UUID] = {}
        for candidate_id in requested:
            candidate_links = by_candidate.get(candidate_id, [])
            unassigned = [link for link in candidate_links if link.batch_id is None]
            if not candidate_links:
                reason = NOT_FOUND_FOR_PARTNER
            elif any(link.batch_id == batch_id for link in candidate_links):
                reason = CSV_ERROR_ALREADY_IN_BATCH
            elif not unassigned:
                reason = ALREADY_ASSIGNED
            else:
                eligible[candidate_id] = unassigned[0].id
                continue
            result.failures.append(AssignmentFailure(candidate_id=candidate_id, error=reason))

        if eligible:
            self._assign(partner_id, batch_id, eligible, result)

        result.succeeded = len(result.succeeded_ids)
        result.failed = len(result.failures)
        logger.info(
            "batch_assignment_complete",
            extra={
                "partner_id": str(partner_id),
                "batch_id": str(batch_id),
                "succeeded": result.succeeded,
                "failed": result.failed,
            },
        )
        return result

    def _assign(
        self,
        partner_id: UUID,
        batch_id: UUID,
        eligible: dict[UUID, UUID],
        result: BatchAssignmentResult,
    ) -> None:
        needed = len(eligible)
        seat = self._ledger.get_active_seat(partner_id, batch_id)
        available = self._ledger.available_seats(seat)
        if seat is None or available < needed:
            raise ApiError(
                400,
                "Insufficient seats",
                {"available_seats": available, "requested": needed},
            )
        if not self._ledger.reserve(seat.id, needed):
            raise ApiError(400, "Insufficient seats", {"requested": needed})

        try:
            updated = self._links.assign_batch(list(eligible.values()), batch_id)
        except Exception:
            self._ledger.release_quietly(seat.id, needed)
            raise

        moved = {link.candidate_id for link in updated}
        if len(moved) < needed:
            # Someone else assigned these links after we read them
            self._ledger.release_quietly(seat.id, needed - len(moved))

        for candidate_id in eligible:
            if candidate_id in moved:
                result.succeeded_ids.append(candidate_id)
            else:
                result.failures.append(
                    AssignmentFailure(candidate_id=candidate_id, error=ALREADY_ASSIGNED)
                )
