"""Outgoing mail for OTP login codes."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from assistify.config import Settings
from assistify.errors import InternalError

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


class Mailer(Protocol):
    async def send(self, to: str, subject: str, body: str) -> None:
        ...


class SmtpMailer:
    """Sends through an SMTP relay; smtplib is blocking so it runs in a worker thread."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._settings.mail_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        s = self._settings
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=SMTP_TIMEOUT_SECONDS) as smtp:
            if s.smtp_use_tls:
                smtp.starttls()
            if s.smtp_username and s.smtp_password:
                smtp.login(s.smtp_username, s.smtp_password.get_secret_value())
            smtp.send_message(message)

    async def send(self, to: str, subject: str, body: str) -> None:
        message = self._build_message(to, subject, body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send mail to %s: %s", to, exc)
            raise InternalError("Failed to send verification email") from exc
        logger.info("Sent '%s' mail to %s", subject, to)


class LoggingMailer:
    """Development stand-in used when no SMTP host is configured."""

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Mail delivery disabled; '%s' for %s: %s", subject, to, body)


def build_mailer(settings: Settings) -> Mailer:
    if settings.smtp_host:
        return SmtpMailer(settings)
    logger.warning("SMTP_HOST not set; login codes will be written to the log")
    return LoggingMailer()
