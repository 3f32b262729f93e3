"""SMTP delivery of formatted search-result emails.

Wraps ``smtplib`` in ``asyncio.to_thread`` so a slow mail server never
blocks the event loop.  Supports implicit TLS (port 465), STARTTLS
(port 587) and plain SMTP, selected by settings.
"""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import structlog

from src.config.settings import Settings
from src.models.email import EmailDocument
from src.utils.errors import EmailDeliveryError
from src.utils.logging import get_logger


class EmailService:
    """Sends :class:`EmailDocument` objects through the configured SMTP server."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def is_enabled(self) -> bool:
        """Return ``True`` when SMTP delivery is switched on and has a host."""
        return self._settings.smtp_enabled and bool(self._settings.smtp_host)

    async def send(self, to_email: str, document: EmailDocument) -> None:
        """Deliver *document* to *to_email*.

        Raises
        ------
        EmailDeliveryError
            If delivery is disabled or the SMTP exchange fails.
        """
        if not self.is_enabled():
            raise EmailDeliveryError("Email delivery is not configured", provider_name="smtp")

        message = self._create_message(to_email, document)
        try:
            await asyncio.to_thread(self._send_message, message)
        except (smtplib.SMTPException, OSError) as exc:
            self._logger.error(
                "email_send_failed",
                to=to_email,
                host=self._settings.smtp_host,
                error=str(exc),
            )
            raise EmailDeliveryError("Failed to send email", provider_name="smtp") from exc

        self._logger.info("email_sent", to=to_email, subject=document.subject)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _create_message(self, to_email: str, document: EmailDocument) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = document.subject
        from_email = self._settings.smtp_from_email or self._settings.smtp_user
        msg["From"] = f"{self._settings.smtp_from_name} <{from_email}>"
        msg["To"] = to_email

        # Last part is the preferred rendering for multipart/alternative.
        msg.attach(MIMEText(document.text_body, "plain", "utf-8"))
        msg.attach(MIMEText(document.html_body, "html", "utf-8"))
        return msg

    def _send_message(self, message: MIMEMultipart) -> None:
        settings = self._settings
        password = settings.smtp_password.get_secret_value() if settings.smtp_password else ""

        if settings.smtp_use_tls and not settings.smtp_starttls:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, context=context) as server:
                if settings.smtp_user:
                    server.login(settings.smtp_user, password)
                server.send_message(message)
            return

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            if settings.smtp_starttls:
                server.starttls(context=ssl.create_default_context())
            if settings.smtp_user:
                server.login(settings.smtp_user, password)
            server.send_message(message)
