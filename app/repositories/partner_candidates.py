"""Partner-candidate link persistence: interface and Supabase implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime
from uuid import UUID

from supabase import Client

from app.core.errors import DuplicateRecordError
from app.db.supabase import is_unique_violation
from app.models.enums import InviteStatus
from app.models.partner_candidate import PartnerCandidate, PartnerCandidateCreate


class PartnerCandidateRepository(ABC):

    @abstractmethod
    def get_by_id(self, link_id: UUID) -> PartnerCandidate | None: ...

    @abstractmethod
    def list_for_candidates(
        self, partner_id: UUID, candidate_ids: list[UUID]
    ) -> list[PartnerCandidate]: ...

    @abstractmethod
    def list_for_candidate(self, candidate_id: UUID) -> list[PartnerCandidate]:
        """Every link for ``candidate_id`` across partners, newest invite first."""

    @abstractmethod
    def create_many(self, data: list[PartnerCandidateCreate]) -> list[PartnerCandidate]: ...

    @abstractmethod
    def mark_paid(self, partner_id: UUID, candidate_id: UUID) -> list[PartnerCandidate]: ...

    @abstractmethod
    def mark_accepted(self, link_id: UUID, accepted_at: datetime) -> PartnerCandidate | None:
        """Move a pending link to accepted; None if it was not pending."""

    @abstractmethod
    def assign_batch(self, link_ids: list[UUID], batch_id: UUID) -> list[PartnerCandidate]: ...

    @abstractmethod
    def list_page(
        self, partner_id: UUID, offset: int, limit: int
    ) -> tuple[list[PartnerCandidate], int]: ...

    @abstractmethod
    def count_by_batch(self, partner_id: UUID) -> dict[UUID, int]: ...


class SupabasePartnerCandidateRepository(PartnerCandidateRepository):
    table = "partner_candidates"

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_id(self, link_id: UUID) -> PartnerCandidate | None:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("id", str(link_id))
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return PartnerCandidate(**rows[0]) if rows else None

    def list_for_candidates(
        self, partner_id: UUID, candidate_ids: list[UUID]
    ) -> list[PartnerCandidate]:
        if not candidate_ids:
            return []
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("partner_id", str(partner_id))
            .in_("candidate_id", [str(cid) for cid in candidate_ids])
            .execute()
        )
        return [PartnerCandidate(**row) for row in result.data or []]

    def list_for_candidate(self, candidate_id: UUID) -> list[PartnerCandidate]:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("candidate_id", str(candidate_id))
            .order("invite_sent_at", desc=True)
            .execute()
        )
        return [PartnerCandidate(**row) for row in result.data or []]

    def create_many(self, data: list[PartnerCandidateCreate]) -> list[PartnerCandidate]:
        if not data:
            return []
        payload = [item.model_dump(mode="json") for item in data]
        try:
            result = self._client.table(self.table).insert(payload).execute()
        except Exception as exc:
            if is_unique_violation(exc):
                raise DuplicateRecordError(str(exc)) from exc
            raise
        return [PartnerCandidate(**row) for row in result.data or []]

    def mark_paid(self, partner_id: UUID, candidate_id: UUID) -> list[PartnerCandidate]:
        result = (
            self._client.table(self.table)
            .update({"is_paid_for": True})
            .eq("partner_id", str(partner_id))
            .eq("candidate_id", str(candidate_id))
            .execute()
        )
        return [PartnerCandidate(**row) for row in result.data or []]

    def mark_accepted(self, link_id: UUID, accepted_at: datetime) -> PartnerCandidate | None:
        result = (
            self._client.table(self.table)
            .update(
                {
                    "invite_status": InviteStatus.accepted.value,
                    "invite_accepted_at": accepted_at.isoformat(),
                }
            )
            .eq("id", str(link_id))
            .eq("invite_status", InviteStatus.pending.value)
            .execute()
        )
        rows = result.data or []
        return PartnerCandidate(**rows[0]) if rows else None

    def assign_batch(self, link_ids: list[UUID], batch_id: UUID) -> list[PartnerCandidate]:
        if not link_ids:
            return []
        try:
            result = (
                self._client.table(self.table)
                .update({"batch_id": str(batch_id), "is_paid_for": True})
                .in_("id", [str(lid) for lid in link_ids])
                .is_("batch_id", "null")
                .execute()
            )
        except Exception as exc:
            if is_unique_violation(exc):
                raise DuplicateRecordError(str(exc)) from exc
            raise
        return [PartnerCandidate(**row) for row in result.data or []]

    def list_page(
        self, partner_id: UUID, offset: int, limit: int
    ) -> tuple[list[PartnerCandidate], int]:
        result = (
            self._client.table(self.table)
            .select("*", count="exact")
            .eq("partner_id", str(partner_id))
            .order("invite_sent_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        links = [PartnerCandidate(**row) for row in result.data or []]
        return links, result.count or 0

    def count_by_batch(self, partner_id: UUID) -> dict[UUID, int]:
        result = (
            self._client.table(self.table)
            .select("batch_id")
            .eq("partner_id", str(partner_id))
            .execute()
        )
        counts = Counter(
            UUID(row["batch_id"]) for row in result.data or [] if row.get("batch_id")
        )
        return dict(counts)
