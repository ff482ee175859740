from __future__ import annotations

import html
import logging
from typing import Sequence

from app.integrations.email import MailTransport, OutgoingEmail
from app.services.errors import NotificationFailed

logger = logging.getLogger(__name__)

_WRAPPER_STYLE = "font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;"
_HEADING_STYLE = "color: #1976d2;"
_DETAILS_STYLE = "background-color: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;"


class NotificationDispatcher:
    """Composes candidate emails and hands them to the mail transport.

    Both senders return a delivered flag and never raise.
    """

    def __init__(self, transport: MailTransport, sender: str):
        self._transport = transport
        self._sender = sender

    async def _deliver(self, email: OutgoingEmail) -> None:
        try:
            delivered = await self._transport.send(email)
        except Exception as exc:  # noqa: BLE001 - transport contract says never raise; enforce it
            raise NotificationFailed(f"mail transport raised: {exc}") from exc
        if not delivered:
            raise NotificationFailed("mail transport reported the message as not delivered")

    async def _send(self, email: OutgoingEmail, kind: str) -> bool:
        try:
            await self._deliver(email)
        except NotificationFailed as exc:
            logger.warning("notification_failed kind=%s to=%s: %s", kind, email.to, exc)
            return False
        logger.info("notification_sent kind=%s to=%s", kind, email.to)
        return True

    async def send_interview_invite(
        self,
        name: str,
        email: str,
        job_title: str,
        when_label: str,
        questions: Sequence[str],
    ) -> bool:
        subject = f"Interview Invitation - {job_title} Position"
        safe_name = html.escape(name)
        safe_title = html.escape(job_title)
        question_items = "".join(f"<li>{html.escape(q)}</li>" for q in questions)
        html_body = f"""
<div style="{_WRAPPER_STYLE}">
  <h2 style="{_HEADING_STYLE}">Congratulations {safe_name}!</h2>
  <p>We're excited to inform you that you've been selected for an interview for the <strong>{safe_title}</strong> position.</p>
  <div style="{_DETAILS_STYLE}">
    <h3>Interview Details:</h3>
    <p><strong>Date &amp; Time:</strong> {html.escape(when_label)}</p>
    <p><strong>Format:</strong> Video Interview</p>
    <p><strong>Duration:</strong> Approximately 45-60 minutes</p>
  </div>
  <h3>Preparation Materials:</h3>
  <p>To help you prepare, here are some areas we'll be discussing:</p>
  <ul>{question_items}</ul>
  <p>Please confirm your availability by replying to this email.</p>
  <p>We look forward to speaking with you!</p>
  <p>Best regards,<br>The HR Team</p>
</div>
""".strip()
        numbered = "\n".join(f"{index}. {question}" for index, question in enumerate(questions, start=1))
        text_body = "\n".join(
            [
                f"Congratulations {name}!",
                "",
                f"You've been selected for an interview for the {job_title} position.",
                "",
                f"Interview Date: {when_label}",
                "Format: Video Interview",
                "Duration: 45-60 minutes",
                "",
                "Preparation areas:",
                numbered,
                "",
                "Please confirm your availability by replying to this email.",
                "",
                "Best regards,",
                "The HR Team",
            ]
        )
        return await self._send(
            OutgoingEmail(to=email, sender=self._sender, subject=subject, text=text_body, html=html_body),
            kind="interview_invite",
        )

    async def send_rejection(self, name: str, email: str, job_title: str) -> bool:
        subject = f"Thank you for your application - {job_title} Position"
        safe_name = html.escape(name)
        safe_title = html.escape(job_title)
        html_body = f"""
<div style="{_WRAPPER_STYLE}">
  <h2 style="{_HEADING_STYLE}">Thank you {safe_name}</h2>
  <p>Thank you for your interest in the <strong>{safe_title}</strong> position and for taking the time to apply.</p>
  <p>After careful consideration, we have decided to move forward with other candidates whose experience more closely matches our current needs.</p>
  <p>We encourage you to apply for future opportunities that match your background and experience. We'll keep your resume on file for consideration.</p>
  <p>We wish you the best of luck in your job search.</p>
  <p>Best regards,<br>The HR Team</p>
</div>
""".strip()
        text_body = "\n".join(
            [
                f"Thank you {name}",
                "",
                f"Thank you for your interest in the {job_title} position.",
                "",
                "After careful consideration, we have decided to move forward with other candidates "
                "whose experience more closely matches our current needs.",
                "",
                "We encourage you to apply for future opportunities and wish you the best of luck in your job search.",
                "",
                "Best regards,",
                "The HR Team",
            ]
        )
        return await self._send(
            OutgoingEmail(to=email, sender=self._sender, subject=subject, text=text_body, html=html_body),
            kind="rejection",
        )
