"""Unit tests for the seat ledger (reservation, release, deactivation)."""

from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.models.enums import SeatReservationMode
from app.models.seat import Seat, SeatCreate
from app.services.seat_ledger import SeatLedger, available_seats
from tests.fakes import FakeBatchRepository, FakeSeatRepository


def _seat(seat_count: int, seats_assigned: int) -> Seat:
    return Seat(
        id=uuid4(),
        partner_id=uuid4(),
        batch_id=uuid4(),
        seat_count=seat_count,
        seats_assigned=seats_assigned,
    )


def _ledger(mode: SeatReservationMode = SeatReservationMode.atomic):
    seats = FakeSeatRepository()
    batches = FakeBatchRepository()
    return SeatLedger(seats, batches, mode), seats, batches


class TestAvailableSeats:

    def test_missing_seat_has_no_capacity(self) -> None:
        assert available_seats(None) == 0

    def test_free_capacity(self) -> None:
        assert available_seats(_seat(5, 2)) == 3

    def test_never_negative_when_oversold(self) -> None:
        """A seat oversold by a past race still reports zero, not a negative."""
        assert available_seats(_seat(2, 3)) == 0


class TestReserveAtomic:

    def test_reserve_increments(self) -> None:
        ledger, seats, _ = _ledger()
        seat = seats.add(uuid4(), uuid4(), seat_count=3)

        assert ledger.reserve(seat.id, 2) is True
        assert seats.rows[seat.id].seats_assigned == 2

    def test_reserve_refused_beyond_capacity(self) -> None:
        """Given 1 free seat, reserving 2 is refused and nothing changes."""
        ledger, seats, _ = _ledger()
        seat = seats.add(uuid4(), uuid4(), seat_count=3, seats_assigned=2)

        assert ledger.reserve(seat.id, 2) is False
        assert seats.rows[seat.id].seats_assigned == 2

    def test_reserve_refused_on_inactive_seat(self) -> None:
        ledger, seats, _ = _ledger()
        seat = seats.add(uuid4(), uuid4(), seat_count=3, is_active=False)

        assert ledger.reserve(seat.id, 1) is False

    def test_zero_count_is_noop(self) -> None:
        ledger, seats, _ = _ledger()
        seat = seats.add(uuid4(), uuid4(), seat_count=0)

        assert ledger.reserve(seat.id, 0) is True
        assert seats.rows[seat.id].seats_assigned == 0


class TestReserveBestEffort:

    def test_best_effort_can_oversell(self) -> None:
        """best_effort mode writes without a capacity guard."""
        ledger, seats, _ = _ledger(SeatReservationMode.best_effort)
        seat = seats.add(uuid4(), uuid4(), seat_count=1, seats_assigned=1)

        assert ledger.reserve(seat.id, 1) is True
        assert seats.rows[seat.id].seats_assigned == 2

    def test_best_effort_unknown_seat(self) -> None:
        ledger, _, _ = _ledger(SeatReservationMode.best_effort)
        with pytest.raises(NotFoundError):
            ledger.reserve(uuid4(), 1)

    def test_best_effort_release_floors_at_zero(self) -> None:
        ledger, seats, _ = _ledger(SeatReservationMode.best_effort)
        seat = seats.add(uuid4(), uuid4(), seat_count=3, seats_assigned=1)

        ledger.release(seat.id, 5)
        assert seats.rows[seat.id].seats_assigned == 0


class TestRelease:

    def test_release_decrements(self) -> None:
        ledger, seats, _ = _ledger()
        seat = seats.add(uuid4(), uuid4(), seat_count=3, seats_assigned=2)

        ledger.release(seat.id, 1)
        assert seats.rows[seat.id].seats_assigned == 1

    def test_release_never_below_zero(self) -> None:
        ledger, seats, _ = _ledger()
        seat = seats.add(uuid4(), uuid4(), seat_count=3, seats_assigned=1)

        ledger.release(seat.id, 4)
        assert seats.rows[seat.id].seats_assigned == 0

    def test_release_quietly_returns_warning(self) -> None:
        """A failing rollback is reported, not raised."""
        ledger, seats, _ = _ledger()
        seat = seats.add(uuid4(), uuid4(), seat_count=3, seats_assigned=1)
        seats.fail_decrement = RuntimeError("db down")

        warning = ledger.release_quietly(seat.id, 1)

        assert warning is not None
        assert "db down" in warning
        assert seats.rows[seat.id].seats_assigned == 1


class TestDeactivate:

    def test_deactivate_keeps_assigned(self) -> None:
        ledger, seats, _ = _ledger()
        partner_id, batch_id = uuid4(), uuid4()
        seats.add(partner_id, batch_id, seat_count=3, seats_assigned=2)

        seat = ledger.deactivate(partner_id, batch_id)

        assert seat.is_active is False
        assert seat.seats_assigned == 2
        assert ledger.get_active_seat(partner_id, batch_id) is None

    def test_deactivate_without_active_seat(self) -> None:
        ledger, _, _ = _ledger()
        with pytest.raises(NotFoundError):
            ledger.deactivate(uuid4(), uuid4())


class TestCreateSeat:

    def _payload(self, partner_id, batch_id) -> SeatCreate:
        return SeatCreate(
            partner_id=partner_id,
            batch_id=batch_id,
            seat_count=10,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 12, 31),
        )

    def test_create_seat(self) -> None:
        ledger, _, batches = _ledger()
        partner_id = uuid4()
        batch = batches.create(partner_id, "Cohort A")

        seat = ledger.create_seat(self._payload(partner_id, batch.id))

        assert seat.seat_count == 10
        assert seat.seats_assigned == 0
        assert [s.available_seats for s in ledger.list_seats(partner_id)] == [10]

    def test_create_seat_for_foreign_batch(self) -> None:
        ledger, _, batches = _ledger()
        batch = batches.create(uuid4(), "Cohort A")

        with pytest.raises(ValidationError) as exc_info:
            ledger.create_seat(self._payload(uuid4(), batch.id))
        assert exc_info.value.details == {"batch_id": ["Batch does not belong to this partner"]}

    def test_duplicate_seat_rejected(self) -> None:
        ledger, _, batches = _ledger()
        partner_id = uuid4()
        batch = batches.create(partner_id, "Cohort A")
        ledger.create_seat(self._payload(partner_id, batch.id))

        with pytest.raises(ValidationError):
            ledger.create_seat(self._payload(partner_id, batch.id))

    def test_window_must_be_ordered(self) -> None:
        with pytest.raises(ValueError):
            SeatCreate(
                partner_id=uuid4(),
                batch_id=uuid4(),
                seat_count=1,
                start_date=date(2026, 6, 1),
                end_date=date(2026, 1, 1),
            )
