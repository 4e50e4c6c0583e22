"""Seat capacity bookkeeping per partner batch.

A seat row records purchased capacity (``seat_count``) and consumed
capacity (``seats_assigned``).  Reservations run in one of two modes:

* ``atomic`` -- a single conditional UPDATE that refuses to exceed
  ``seat_count``; a refused reservation returns False.
* ``best_effort`` -- read, add, write.  Concurrent callers may oversell.
"""

from __future__ import annotations

import logging
from uuid import UUID

from app.core.errors import DuplicateRecordError, NotFoundError, ValidationError
from app.models.enums import SeatReservationMode
from app.models.seat import Seat, SeatCreate, SeatView
from app.repositories.batches import BatchRepository
from app.repositories.seats import SeatRepository

logger = logging.getLogger(__name__)


def available_seats(seat: Seat | None) -> int:
    """Free capacity of ``seat``; a missing seat has none."""
    if seat is None:
        return 0
    return max(0, seat.seat_count - seat.seats_assigned)


class SeatLedger:

    def __init__(
        self,
        seats: SeatRepository,
        batches: BatchRepository,
        mode: SeatReservationMode = SeatReservationMode.atomic,
    ) -> None:
        self._seats = seats
        self._batches = batches
        self.mode = mode

    def get_active_seat(self, partner_id: UUID, batch_id: UUID) -> Seat | None:
        return self._seats.get_active(partner_id, batch_id)

    def available_seats(self, seat: Seat | None) -> int:
        return available_seats(seat)

    def reserve(self, seat_id: UUID, count: int = 1) -> bool:
        """Add ``count`` to ``seats_assigned``; False if capacity was refused."""
        if count <= 0:
            return True

        if self.mode == SeatReservationMode.atomic:
            updated = self._seats.increment_if_available(seat_id, count)
            reserved = updated is not None
        else:
            seat = self._seats.get_by_id(seat_id)
            if seat is None:
                raise NotFoundError("Seat")
            updated = self._seats.set_seats_assigned(seat_id, seat.seats_assigned + count)
            reserved = updated is not None

        logger.info(
            "seats_reserved" if reserved else "seats_reservation_refused",
            extra={
                "seat_id": str(seat_id),
                "count": count,
                "mode": self.mode.value,
                "seats_assigned": updated.seats_assigned if updated else None,
            },
        )
        return reserved

    def release(self, seat_id: UUID, count: int = 1) -> None:
        """Subtract ``count`` from ``seats_assigned``, never going below zero."""
        if count <= 0:
            return

        if self.mode == SeatReservationMode.atomic:
            updated = self._seats.decrement(seat_id, count)
        else:
            seat = self._seats.get_by_id(seat_id)
            if seat is None:
                raise NotFoundError("Seat")
            updated = self._seats.set_seats_assigned(
                seat_id, max(0, seat.seats_assigned - count)
            )

        logger.info(
            "seats_released",
            extra={
                "seat_id": str(seat_id),
                "count": count,
                "seats_assigned": updated.seats_assigned if updated else None,
            },
        )

    def release_quietly(self, seat_id: UUID, count: int = 1) -> str | None:
        """Best-effort rollback; returns a warning instead of raising."""
        try:
            self.release(seat_id, count)
        except Exception as exc:
            logger.error(
                "seat_rollback_failed",
                extra={"seat_id": str(seat_id), "count": count, "error": str(exc)},
                exc_info=True,
            )
            return f"Failed to release {count} seat(s): {exc}"
        return None

    def deactivate(self, partner_id: UUID, batch_id: UUID) -> Seat:
        """Flip the batch's active seat off.  Assigned candidates keep their seats."""
        seat = self._seats.deactivate(partner_id, batch_id)
        if seat is None:
            raise NotFoundError("Active seat")
        logger.info(
            "seat_deactivated",
            extra={"partner_id": str(partner_id), "batch_id": str(batch_id)},
        )
        return seat

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def create_seat(self, data: SeatCreate) -> Seat:
        batch = self._batches.get_by_id(data.batch_id)
        if batch is None:
            raise ValidationError({"batch_id": ["Batch not found"]})
        if batch.partner_id != data.partner_id:
            raise ValidationError({"batch_id": ["Batch does not belong to this partner"]})
        try:
            seat = self._seats.create(data)
        except DuplicateRecordError as exc:
            raise ValidationError(
                {"batch_id": ["A seat already exists for this batch"]}
            ) from exc
        logger.info(
            "seat_created",
            extra={
                "seat_id": str(seat.id),
                "partner_id": str(seat.partner_id),
                "batch_id": str(seat.batch_id),
                "seat_count": seat.seat_count,
            },
        )
        return seat

    def list_seats(self, partner_id: UUID) -> list[SeatView]:
        return [
            SeatView(**seat.model_dump(), available_seats=available_seats(seat))
            for seat in self._seats.list_for_partner(partner_id)
        ]
