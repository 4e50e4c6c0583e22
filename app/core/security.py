"""Bearer-token authentication and invitation tokens.

Access tokens are issued elsewhere; this module only verifies them
(HS256 via python-jose) and exposes FastAPI dependencies for the partner
and admin roles.  Invitation tokens are random per call, stored hashed,
and carry an explicit expiry.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core.config import settings
from app.core.errors import AuthenticationError, ForbiddenError
from app.models.enums import AccountType

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: UUID
    account_type: AccountType
    partner_id: UUID | None = None


def create_access_token(
    user_id: UUID,
    account_type: AccountType,
    partner_id: UUID | None = None,
    expires_delta: timedelta = timedelta(hours=1),
) -> str:
    """Encode a signed access token (used by tests and internal tooling)."""
    claims: dict[str, object] = {
        "sub": str(user_id),
        "account_type": account_type.value,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    if partner_id is not None:
        claims["partner_id"] = str(partner_id)
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    try:
        claims = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        user_id = UUID(claims["sub"])
        account_type = AccountType(claims.get("account_type", AccountType.candidate.value))
        raw_partner = claims.get("partner_id")
        partner_id = UUID(raw_partner) if raw_partner else None
    except (JWTError, KeyError, ValueError) as exc:
        raise AuthenticationError("Invalid or expired token") from exc
    return CurrentUser(user_id=user_id, account_type=account_type, partner_id=partner_id)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return decode_access_token(credentials.credentials)


def partner_scope(user: CurrentUser) -> UUID:
    """The partner a request acts for; any other caller is refused."""
    if user.account_type != AccountType.partner or user.partner_id is None:
        raise ForbiddenError("Partner account required")
    return user.partner_id


def require_partner(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    partner_scope(user)
    return user


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.account_type != AccountType.admin:
        raise ForbiddenError("Admin account required")
    return user


# ---------------------------------------------------------------------------
# Invitation tokens
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InviteToken:
    token: str
    token_hash: str
    expires_at: datetime


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_invite_token(ttl_hours: int | None = None) -> InviteToken:
    """Create a fresh invitation token valid for ``ttl_hours``."""
    hours = settings.INVITE_TOKEN_TTL_HOURS if ttl_hours is None else ttl_hours
    token = secrets.token_urlsafe(32)
    return InviteToken(
        token=token,
        token_hash=hash_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(hours=hours),
    )


def verify_invite_token(
    token: str,
    token_hash: str | None,
    expires_at: datetime | None,
    now: datetime | None = None,
) -> bool:
    if not token or not token_hash or expires_at is None:
        return False
    current = now or datetime.now(timezone.utc)
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if current >= expires_at:
        return False
    return hmac.compare_digest(hash_token(token), token_hash)
