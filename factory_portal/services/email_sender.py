"""Mailgun HTTP email sender service."""

from __future__ import annotations

import logging
from typing import Protocol

import requests

from factory_portal.core.config import Config, get_config

logger = logging.getLogger(__name__)


class MailSender(Protocol):
    @property
    def enabled(self) -> bool: ...

    def send_email(self, to_email: str, subject: str, html: str, text: str | None = None) -> bool: ...


class EmailSender:
    """Service for sending transactional emails through the Mailgun messages API."""

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or get_config()
        self.http = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return self.config.mail_configured

    @property
    def from_address(self) -> str:
        from_email = self.config.MAILGUN_FROM_EMAIL or f"noreply@{self.config.MAILGUN_DOMAIN}"
        return f"{self.config.MAILGUN_FROM_NAME} <{from_email}>"

    def send_email(self, to_email: str, subject: str, html: str, text: str | None = None) -> bool:
        if not self.enabled:
            logger.info("email.mailgun_not_configured", extra={"event": "email.mailgun_not_configured"})
            return False

        data = {
            "from": self.from_address,
            "to": to_email,
            "subject": subject,
            "html": html,
        }
        if text:
            data["text"] = text

        url = f"{self.config.MAILGUN_API_HOST}/v3/{self.config.MAILGUN_DOMAIN}/messages"
        try:
            response = self.http.post(
                url,
                auth=("api", self.config.MAILGUN_API_KEY),
                data=data,
                timeout=self.config.MAILGUN_TIMEOUT_SECONDS,
            )
        except requests.RequestException:
            logger.exception("email.send_failed", extra={"event": "email.send_failed", "to_email": to_email})
            return False

        if not response.ok:
            logger.error(
                "email.mailgun_error",
                extra={"event": "email.mailgun_error", "to_email": to_email, "status_code": response.status_code},
            )
            return False

        logger.info("email.sent", extra={"event": "email.sent", "to_email": to_email})
        return True
