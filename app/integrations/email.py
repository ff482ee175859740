from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    sender: str
    subject: str
    text: str
    html: str


class MailTransport(Protocol):
    async def send(self, email: OutgoingEmail) -> bool: ...


def _build_message(email: OutgoingEmail) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = email.subject
    msg["From"] = email.sender
    msg["To"] = email.to
    msg.set_content(email.text)
    msg.add_alternative(email.html, subtype="html")
    return msg


class SmtpMailTransport:
    """Delivers mail over SMTP (STARTTLS or SSL, with an optional fallback to the other mode)."""

    def __init__(self, settings: Settings):
        self._settings = settings

    @property
    def configured(self) -> bool:
        return bool(self._settings.smtp_host)

    def _smtp_password(self) -> str | None:
        if not self._settings.smtp_password:
            return None
        # Gmail app passwords are often copied with spaces every 4 chars.
        return self._settings.smtp_password.replace(" ", "")

    def _login_if_needed(self, server: smtplib.SMTP) -> None:
        password = self._smtp_password()
        if self._settings.smtp_user and password:
            server.login(self._settings.smtp_user, password)

    def _send_with(self, host: str, port: int, use_tls: bool, msg: EmailMessage, context: ssl.SSLContext) -> None:
        if use_tls:
            with smtplib.SMTP(host, port, timeout=15) as server:
                server.starttls(context=context)
                self._login_if_needed(server)
                server.send_message(msg)
            return

        with smtplib.SMTP_SSL(host, port, context=context, timeout=15) as server:
            self._login_if_needed(server)
            server.send_message(msg)

    def _send_blocking(self, email: OutgoingEmail) -> bool:
        settings = self._settings
        msg = _build_message(email)
        context = ssl.create_default_context()
        host = settings.smtp_host or ""
        primary_mode = "STARTTLS" if settings.smtp_use_tls else "SSL"
        try:
            self._send_with(host, settings.smtp_port, settings.smtp_use_tls, msg, context)
            return True
        except Exception as exc:  # noqa: BLE001 - mail failures are soft
            logger.exception(
                "smtp_send_failed host=%s port=%s mode=%s: %s",
                host,
                settings.smtp_port,
                primary_mode,
                exc,
            )

        if not settings.smtp_fallback_ssl:
            return False

        fallback_port = 465 if settings.smtp_use_tls else 587
        fallback_tls = not settings.smtp_use_tls
        fallback_mode = "STARTTLS" if fallback_tls else "SSL"
        try:
            self._send_with(host, fallback_port, fallback_tls, msg, context)
            logger.info("smtp_fallback_sent host=%s port=%s mode=%s", host, fallback_port, fallback_mode)
            return True
        except Exception as exc:  # noqa: BLE001 - mail failures are soft
            logger.exception(
                "smtp_fallback_failed host=%s port=%s mode=%s: %s",
                host,
                fallback_port,
                fallback_mode,
                exc,
            )
            return False

    async def send(self, email: OutgoingEmail) -> bool:
        if not self.configured:
            logger.warning("smtp_not_configured email sending disabled; skipping to=%s", email.to)
            return False
        return await asyncio.to_thread(self._send_blocking, email)
