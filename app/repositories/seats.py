"""Seat persistence: interface and Supabase implementation.

The conditional increment and the floored decrement live in the
``reserve_seats`` / ``release_seats`` stored functions so that they run as
a single UPDATE statement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from supabase import Client

from app.core.errors import DuplicateRecordError
from app.db.supabase import is_unique_violation
from app.models.seat import Seat, SeatCreate


class SeatRepository(ABC):

    @abstractmethod
    def get_by_id(self, seat_id: UUID) -> Seat | None: ...

    @abstractmethod
    def get_active(self, partner_id: UUID, batch_id: UUID) -> Seat | None: ...

    @abstractmethod
    def list_for_partner(self, partner_id: UUID) -> list[Seat]: ...

    @abstractmethod
    def create(self, data: SeatCreate) -> Seat: ...

    @abstractmethod
    def increment_if_available(self, seat_id: UUID, count: int) -> Seat | None:
        """Add ``count`` only if capacity allows; None when it does not."""

    @abstractmethod
    def decrement(self, seat_id: UUID, count: int) -> Seat | None:
        """Subtract ``count`` from ``seats_assigned``, flooring at zero."""

    @abstractmethod
    def set_seats_assigned(self, seat_id: UUID, seats_assigned: int) -> Seat | None: ...

    @abstractmethod
    def deactivate(self, partner_id: UUID, batch_id: UUID) -> Seat | None: ...


class SupabaseSeatRepository(SeatRepository):
    table = "seats"

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_id(self, seat_id: UUID) -> Seat | None:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("id", str(seat_id))
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return Seat(**rows[0]) if rows else None

    def get_active(self, partner_id: UUID, batch_id: UUID) -> Seat | None:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("partner_id", str(partner_id))
            .eq("batch_id", str(batch_id))
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return Seat(**rows[0]) if rows else None

    def list_for_partner(self, partner_id: UUID) -> list[Seat]:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("partner_id", str(partner_id))
            .execute()
        )
        return [Seat(**row) for row in result.data or []]

    def create(self, data: SeatCreate) -> Seat:
        try:
            result = (
                self._client.table(self.table)
                .insert(data.model_dump(mode="json"))
                .execute()
            )
        except Exception as exc:
            if is_unique_violation(exc):
                raise DuplicateRecordError(str(exc)) from exc
            raise
        return Seat(**result.data[0])

    def increment_if_available(self, seat_id: UUID, count: int) -> Seat | None:
        result = self._client.rpc(
            "reserve_seats", {"p_seat_id": str(seat_id), "p_count": count}
        ).execute()
        rows = result.data or []
        return Seat(**rows[0]) if rows else None

    def decrement(self, seat_id: UUID, count: int) -> Seat | None:
        result = self._client.rpc(
            "release_seats", {"p_seat_id": str(seat_id), "p_count": count}
        ).execute()
        rows = result.data or []
        return Seat(**rows[0]) if rows else None

    def set_seats_assigned(self, seat_id: UUID, seats_assigned: int) -> Seat | None:
        result = (
            self._client.table(self.table)
            .update({"seats_assigned": seats_assigned})
            .eq("id", str(seat_id))
            .execute()
        )
        rows = result.data or []
        return Seat(**rows[0]) if rows else None

    def deactivate(self, partner_id: UUID, batch_id: UUID) -> Seat | None:
        result = (
            self._client.table(self.table)
            .update({"is_active": False})
            .eq("partner_id", str(partner_id))
            .eq("batch_id", str(batch_id))
            .eq("is_active", True)
            .execute()
        )
        rows = result.data or []
        return Seat(**rows[0]) if rows else None
