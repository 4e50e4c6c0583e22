"""User persistence: interface and Supabase implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from supabase import Client

from app.core.errors import DuplicateRecordError
from app.db.supabase import is_unique_violation
from app.models.user import User, UserCreate


class UserRepository(ABC):

    @abstractmethod
    def get_by_id(self, user_id: UUID) -> User | None: ...

    @abstractmethod
    def get_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    def list_by_emails(self, emails: list[str]) -> list[User]: ...

    @abstractmethod
    def list_by_ids(self, user_ids: list[UUID]) -> list[User]: ...

    @abstractmethod
    def create(self, data: UserCreate) -> User: ...

    @abstractmethod
    def create_many(self, data: list[UserCreate]) -> list[User]: ...

    @abstractmethod
    def set_invite_token(self, user_id: UUID, token_hash: str, expires_at: datetime) -> None: ...

    @abstractmethod
    def clear_invite_token(self, user_id: UUID) -> None: ...

    @abstractmethod
    def grant_first_enrollment_bonus(self, user_id: UUID, seconds: int) -> bool:
        """Add ``seconds`` and set ``user_first_enrollment`` if it was unset.

        Returns False when the bonus had already been granted.
        """


class SupabaseUserRepository(UserRepository):
    table = "users"

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_id(self, user_id: UUID) -> User | None:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return User(**rows[0]) if rows else None

    def get_by_email(self, email: str) -> User | None:
        result = (
            self._client.table(self.table)
            .select("*")
            .eq("email", email)
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return User(**rows[0]) if rows else None

    def list_by_emails(self, emails: list[str]) -> list[User]:
        if not emails:
            return []
        result = self._client.table(self.table).select("*").in_("email", emails).execute()
        return [User(**row) for row in result.data or []]

    def list_by_ids(self, user_ids: list[UUID]) -> list[User]:
        if not user_ids:
            return []
        result = (
            self._client.table(self.table)
            .select("*")
            .in_("id", [str(uid) for uid in user_ids])
            .execute()
        )
        return [User(**row) for row in result.data or []]

    def create(self, data: UserCreate) -> User:
        return self.create_many([data])[0]

    def create_many(self, data: list[UserCreate]) -> list[User]:
        if not data:
            return []
        payload = [item.model_dump(mode="json") for item in data]
        try:
            result = self._client.table(self.table).insert(payload).execute()
        except Exception as exc:
            if is_unique_violation(exc):
                raise DuplicateRecordError(str(exc)) from exc
            raise
        return [User(**row) for row in result.data or []]

    def set_invite_token(self, user_id: UUID, token_hash: str, expires_at: datetime) -> None:
        self._client.table(self.table).update(
            {
                "invite_token_hash": token_hash,
                "invite_token_expires_at": expires_at.isoformat(),
            }
        ).eq("id", str(user_id)).execute()

    def clear_invite_token(self, user_id: UUID) -> None:
        self._client.table(self.table).update(
            {"invite_token_hash": None, "invite_token_expires_at": None}
        ).eq("id", str(user_id)).execute()

    def grant_first_enrollment_bonus(self, user_id: UUID, seconds: int) -> bool:
        result = self._client.rpc(
            "grant_first_enrollment_bonus",
            {"p_user_id": str(user_id), "p_seconds": seconds},
        ).execute()
        return bool(result.data)
