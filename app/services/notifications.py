"""Templated email delivery.

``EmailSender`` is the interface the onboarding and enrollment services
depend on; ``PostmarkEmailSender`` talks to the Postmark template API over
httpx.  When no API key is configured, sends are skipped and logged so
local environments work without a mail provider.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class TemplateEmail:
    to: str
    template: str
    model: dict[str, Any] = field(default_factory=dict)


class EmailSender(ABC):

    @abstractmethod
    def send(self, message: TemplateEmail) -> None:
        """Deliver one message; raises on provider failure."""

    @abstractmethod
    def send_batch(self, messages: list[TemplateEmail]) -> None: ...


class PostmarkEmailSender(EmailSender):

    def __init__(self, settings: Settings, timeout: float = 15.0) -> None:
        self._settings = settings
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Postmark-Server-Token": self._settings.EMAIL_API_KEY,
        }

    def _payload(self, message: TemplateEmail) -> dict[str, Any]:
        return {
            "From": self._settings.EMAIL_FROM,
            "To": message.to,
            "TemplateAlias": message.template,
            "TemplateModel": {"product_name": self._settings.PRODUCT_NAME, **message.model},
        }

    def send(self, message: TemplateEmail) -> None:
        if not self._settings.EMAIL_API_KEY:
            logger.info("email_skipped", extra={"to": message.to, "template": message.template})
            return
        response = httpx.post(
            f"{self._settings.EMAIL_API_BASE_URL}/email/withTemplate",
            headers=self._headers(),
            json=self._payload(message),
            timeout=self._timeout,
        )
        response.raise_for_status()
        logger.info("email_sent", extra={"to": message.to, "template": message.template})

    def send_batch(self, messages: list[TemplateEmail]) -> None:
        if not messages:
            return
        if not self._settings.EMAIL_API_KEY:
            logger.info("email_batch_skipped", extra={"count": len(messages)})
            return
        response = httpx.post(
            f"{self._settings.EMAIL_API_BASE_URL}/email/batchWithTemplates",
            headers=self._headers(),
            json={"Messages": [self._payload(m) for m in messages]},
            timeout=self._timeout,
        )
        response.raise_for_status()
        logger.info("email_batch_sent", extra={"count": len(messages)})
