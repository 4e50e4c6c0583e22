"""Candidate batch persistence: interface and Supabase implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from supabase import Client

from app.core.errors import DuplicateRecordError
from app.db.supabase import is_unique_violation
from app.models.batch import CandidateBatch


class BatchRepository(ABC):

    @abstractmethod
    def get_by_id(self, batch_id: UUID) -> CandidateBatch | None: ...

    @abstractmethod
    def get_by_name(self, partner_id: UUID, batch_name: str) -> CandidateBatch | None: ...

    @abstractmethod
    def list_for_partner(self, partner_id: UUID) -> list[CandidateBatch]: ...

    @abstractmethod
    def create(self, partner_id: UUID, batch_name: str) -> CandidateBatch:
        """Insert a batch; raises ``DuplicateRecordError`` on a name clash."""


class SupabaseBatchRepository(BatchRepository):
    table = "candidate_batches"

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_id(self, batch_id: UUID) -> CandidateBatch | None:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("id", str(batch_id))
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return CandidateBatch(**rows[0]) if rows else None

    def get_by_name(self, partner_id: UUID, batch_name: str) -> CandidateBatch | None:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("partner_id", str(partner_id))
            .eq("batch_name", batch_name)
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return CandidateBatch(**rows[0]) if rows else None

    def list_for_partner(self, partner_id: UUID) -> list[CandidateBatch]:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("partner_id", str(partner_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [CandidateBatch(**row) for row in result.data or []]

    def create(self, partner_id: UUID, batch_name: str) -> CandidateBatch:
        try:
            result = (
                self._client.table(self.table)
                .insert({"partner_id": str(partner_id), "batch_name": batch_name})
                .execute()
            )
        except Exception as exc:
            if is_unique_violation(exc):
                raise DuplicateRecordError(str(exc)) from exc
            raise
        return CandidateBatch(**result.data[0])
