"""Candidate batch management."""

from __future__ import annotations

import logging
from uuid import UUID

from app.core.errors import DuplicateRecordError, ValidationError
from app.models.batch import BatchSummary, CandidateBatch
from app.repositories.batches import BatchRepository
from app.repositories.partner_candidates import PartnerCandidateRepository
from app.repositories.seats import SeatRepository
from app.services.seat_ledger import available_seats

logger = logging.getLogger(__name__)

BATCH_NAME_TAKEN = "Batch name already exists for this partner"


class BatchService:

    def __init__(
        self,
        batches: BatchRepository,
        seats: SeatRepository,
        links: PartnerCandidateRepository,
    ) -> None:
        self._batches = batches
        self._seats = seats
        self._links = links

    def get_partner_batch(self, partner_id: UUID, batch_id: UUID) -> CandidateBatch:
        """Return the batch, or raise if it is unknown or owned by another partner."""
        batch = self._batches.get_by_id(batch_id)
        if batch is None:
            raise ValidationError({"batch_id": ["Batch not found"]})
        if batch.partner_id != partner_id:
            raise ValidationError({"batch_id": ["Batch does not belong to this partner"]})
        return batch

    def create_batch(self, partner_id: UUID, batch_name: str) -> CandidateBatch:
        name = batch_name.strip()
        if self._batches.get_by_name(partner_id, name) is not None:
            raise ValidationError({"batch_name": [BATCH_NAME_TAKEN]}, message=BATCH_NAME_TAKEN)
        try:
            batch = self._batches.create(partner_id, name)
        except DuplicateRecordError as exc:
            raise ValidationError({"batch_name": [BATCH_NAME_TAKEN]}, message=BATCH_NAME_TAKEN) from exc

        logger.info(
            "batch_created",
            extra={"partner_id": str(partner_id), "batch_id": str(batch.id), "batch_name": name},
        )
        return batch

    def list_batches(self, partner_id: UUID) -> list[BatchSummary]:
        batches = self._batches.list_for_partner(partner_id)
        counts = self._links.count_by_batch(partner_id)
        active_seats = {
            seat.batch_id: seat
            for seat in self._seats.list_for_partner(partner_id)
            if seat.is_active
        }

        summaries: list[BatchSummary] = []
        for batch in batches:
            seat = active_seats.get(batch.id)
            summaries.append(
                BatchSummary(
                    batch_id=batch.id,
                    batch_name=batch.batch_name,
                    created_at=batch.created_at,
                    candidate_count=counts.get(batch.id, 0),
                    seat_count=seat.seat_count if seat else 0,
                    seats_assigned=seat.seats_assigned if seat else 0,
                    available_seats=available_seats(seat),
                    seat_active=seat is not None,
                )
            )
        return summaries
