"""Candidate invitation tokens and emails."""

from __future__ import annotations

import logging
from urllib.parse import urlencode
from uuid import UUID

from app.core.config import Settings
from app.core.errors import NotFoundError, ValidationError
from app.core.security import generate_invite_token, verify_invite_token
from app.models.partner import Partner
from app.models.user import User
from app.repositories.users import UserRepository
from app.services.notifications import EmailSender, TemplateEmail

logger = logging.getLogger(__name__)


class InvitationService:

    def __init__(self, users: UserRepository, email: EmailSender, settings: Settings) -> None:
        self._users = users
        self._email = email
        self._settings = settings

    def _message(self, user: User, partner: Partner, token: str) -> TemplateEmail:
        query = urlencode({"candidate_id": str(user.id), "token": token})
        return TemplateEmail(
            to=user.email,
            template=self._settings.INVITE_TEMPLATE_ID,
            model={
                "firstname": user.firstname,
                "partner_name": partner.organization_name,
                "invite_url": f"{self._settings.FRONTEND_URL}/accept-invite?{query}",
                "expires_in_hours": self._settings.INVITE_TOKEN_TTL_HOURS,
            },
        )

    def _issue_token(self, user: User) -> str:
        """Store a fresh token hash on the user, replacing any earlier one."""
        invite = generate_invite_token(self._settings.INVITE_TOKEN_TTL_HOURS)
        self._users.set_invite_token(user.id, invite.token_hash, invite.expires_at)
        return invite.token

    def invite(self, user: User, partner: Partner) -> None:
        """Store a fresh token for ``user`` and email the invitation."""
        token = self._issue_token(user)
        self._email.send(self._message(user, partner, token))
        logger.info(
            "invitation_sent",
            extra={"candidate_id": str(user.id), "partner_id": str(partner.id)},
        )

    def invite_many(self, users: list[User], partner: Partner) -> list[str]:
        """Issue tokens for every user, then send one batch of emails."""
        warnings: list[str] = []
        messages: list[TemplateEmail] = []
        for user in users:
            try:
                token = self._issue_token(user)
            except Exception as exc:
                logger.error(
                    "invitation_token_failed",
                    extra={"candidate_id": str(user.id), "error": str(exc)},
                    exc_info=True,
                )
                warnings.append(f"Failed to create invitation for {user.email}: {exc}")
                continue
            messages.append(self._message(user, partner, token))

        if messages:
            self._email.send_batch(messages)
            logger.info(
                "invitation_batch_sent",
                extra={"partner_id": str(partner.id), "count": len(messages)},
            )
        return warnings

    def verify(self, candidate_id: UUID, token: str) -> User:
        user = self._users.get_by_id(candidate_id)
        if user is None:
            raise NotFoundError("Candidate")
        if not verify_invite_token(token, user.invite_token_hash, user.invite_token_expires_at):
            raise ValidationError({"token": ["Invalid or expired invitation token"]})
        return user

    def consume(self, candidate_id: UUID) -> None:
        self._users.clear_invite_token(candidate_id)
