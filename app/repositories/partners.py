"""Partner persistence: interface and Supabase implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from uuid import UUID

from supabase import Client

from app.models.partner import Partner


class PartnerRepository(ABC):

    @abstractmethod
    def get_by_id(self, partner_id: UUID) -> Partner | None: ...

    @abstractmethod
    def mark_candidate_added(self, partner_id: UUID) -> bool:
        """Set the first-candidate flag if unset; True when it changed."""


class SupabasePartnerRepository(PartnerRepository):
    table = "partners"

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_id(self, partner_id: UUID) -> Partner | None:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("id", str(partner_id))
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return Partner(**rows[0]) if rows else None

    def mark_candidate_added(self, partner_id: UUID) -> bool:
        result = (
            self._client.table(self.table)
            .update(
                {
                    "has_added_candidates": True,
                    "first_candidate_added_at": datetime.now(timezone.utc).isoformat(),
                }
            )
            .eq("id", str(partner_id))
            .eq("has_added_candidates", False)
            .execute()
        )
        return bool(result.data)
