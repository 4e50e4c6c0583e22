"""Pydantic models for the ``users`` table."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.enums import AccountType


class UserCreate(BaseModel):
    """Insert payload; onboarding creates candidates without a password."""
    firstname: str
    lastname: str
    email: str
    password_hash: str | None = None
    is_active: bool = True
    account_type: AccountType = AccountType.candidate


class User(BaseModel):
    """Full user record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    firstname: str
    lastname: str
    email: str
    is_active: bool = True
    account_type: AccountType = AccountType.candidate
    user_balance_seconds: int = 0
    user_first_enrollment: bool = False
    invite_token_hash: str | None = None
    invite_token_expires_at: datetime | None = None
    created_at: datetime | None = None
