"""Unit tests for SMTP email delivery (smtplib is patched)."""

from __future__ import annotations

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from src.config.settings import Settings
from src.models.email import EmailDocument
from src.services.email_service import EmailService
from src.utils.errors import EmailDeliveryError


def _settings(**overrides) -> Settings:
    defaults = {
        "smtp_enabled": True,
        "smtp_host": "smtp.example.com",
        "smtp_port": 587,
        "smtp_user": "bot@example.com",
        "smtp_password": "hunter2",
        "smtp_use_tls": False,
        "smtp_starttls": True,
        "smtp_from_email": "search@example.com",
        "smtp_from_name": "Knowledge Base Search",
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture
def document() -> EmailDocument:
    return EmailDocument(
        subject="Knowledge Base Search Results: python",
        html_body="<h2>Search Results for: python</h2>",
        text_body="Search Results for: python",
    )


class TestIsEnabled:
    def test_enabled_with_host(self) -> None:
        assert EmailService(_settings()).is_enabled() is True

    def test_disabled_flag(self) -> None:
        assert EmailService(_settings(smtp_enabled=False)).is_enabled() is False

    def test_missing_host(self) -> None:
        assert EmailService(_settings(smtp_host="")).is_enabled() is False


class TestSend:
    @pytest.mark.asyncio
    async def test_starttls_delivery(self, document: EmailDocument) -> None:
        with patch("src.services.email_service.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            await EmailService(_settings()).send("user@example.com", document)

        smtp_cls.assert_called_once_with("smtp.example.com", 587)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.com", "hunter2")
        server.send_message.assert_called_once()

        message = server.send_message.call_args.args[0]
        assert message["Subject"] == "Knowledge Base Search Results: python"
        assert message["To"] == "user@example.com"
        assert message["From"] == "Knowledge Base Search <search@example.com>"
        parts = message.get_payload()
        assert [part.get_content_type() for part in parts] == ["text/plain", "text/html"]

    @pytest.mark.asyncio
    async def test_implicit_tls_delivery(self, document: EmailDocument) -> None:
        settings = _settings(smtp_use_tls=True, smtp_starttls=False, smtp_port=465)
        with patch("src.services.email_service.smtplib.SMTP_SSL") as ssl_cls:
            server = ssl_cls.return_value.__enter__.return_value
            await EmailService(settings).send("user@example.com", document)

        assert ssl_cls.call_args.args == ("smtp.example.com", 465)
        server.send_message.assert_called_once()

    @pytest.mark.asyncio
    async def test_no_login_without_user(self, document: EmailDocument) -> None:
        settings = _settings(smtp_user="", smtp_starttls=False)
        with patch("src.services.email_service.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            await EmailService(settings).send("user@example.com", document)

        server.login.assert_not_called()
        server.starttls.assert_not_called()

    @pytest.mark.asyncio
    async def test_from_falls_back_to_user(self, document: EmailDocument) -> None:
        with patch("src.services.email_service.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            await EmailService(_settings(smtp_from_email="")).send("user@example.com", document)

        message = server.send_message.call_args.args[0]
        assert message["From"] == "Knowledge Base Search <bot@example.com>"

    @pytest.mark.asyncio
    async def test_disabled_raises(self, document: EmailDocument) -> None:
        with pytest.raises(EmailDeliveryError, match="not configured"):
            await EmailService(_settings(smtp_enabled=False)).send("user@example.com", document)

    @pytest.mark.asyncio
    async def test_smtp_failure_raises_delivery_error(self, document: EmailDocument) -> None:
        with patch("src.services.email_service.smtplib.SMTP") as smtp_cls:
            server: MagicMock = smtp_cls.return_value.__enter__.return_value
            server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
            with pytest.raises(EmailDeliveryError) as exc_info:
                await EmailService(_settings()).send("user@example.com", document)

        assert exc_info.value.provider_name == "smtp"
        assert isinstance(exc_info.value.__cause__, smtplib.SMTPAuthenticationError)

    @pytest.mark.asyncio
    async def test_connection_failure_raises_delivery_error(self, document: EmailDocument) -> None:
        with patch(
            "src.services.email_service.smtplib.SMTP",
            side_effect=ConnectionRefusedError("refused"),
        ):
            with pytest.raises(EmailDeliveryError):
                await EmailService(_settings()).send("user@example.com", document)
