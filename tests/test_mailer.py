"""Unit tests for app.services.mailer (SMTP delivery is mocked)."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import aiosmtplib

from app.services import mailer


def _settings(enabled: bool) -> MagicMock:
    settings = MagicMock()
    settings.MAIL_ENABLED = enabled
    settings.MAIL_FROM = "no-reply@gatekeeper.local"
    settings.FRONTEND_URL = "http://localhost:3000"
    settings.SMTP_HOST = "smtp.local"
    settings.SMTP_PORT = 587
    settings.SMTP_USERNAME = ""
    settings.SMTP_PASSWORD = None
    settings.SMTP_USE_TLS = False
    settings.SMTP_START_TLS = True
    settings.SMTP_TIMEOUT_SEC = 5.0
    return settings


class TestMailer(unittest.TestCase):
    def test_link_carries_token(self) -> None:
        with patch("app.services.mailer.aiosmtplib.send", new_callable=AsyncMock) as send:
            sent = asyncio.run(
                mailer.send_reset_password_email(_settings(True), "rita@mail.com", "abc-123")
            )
        self.assertTrue(sent)
        message = send.await_args.args[0]
        self.assertEqual(message["To"], "rita@mail.com")
        self.assertIn("http://localhost:3000/reset-password?token=abc-123", message.get_content())
        self.assertEqual(send.await_args.kwargs["hostname"], "smtp.local")
        self.assertIsNone(send.await_args.kwargs["username"])

    def test_disabled_does_not_send(self) -> None:
        with patch("app.services.mailer.aiosmtplib.send", new_callable=AsyncMock) as send:
            sent = asyncio.run(mailer.send_verification_email(_settings(False), "v@mail.com", "tok"))
        self.assertFalse(sent)
        send.assert_not_awaited()

    def test_smtp_failure_is_logged_not_raised(self) -> None:
        failing = AsyncMock(side_effect=aiosmtplib.SMTPException("connection refused"))
        with patch("app.services.mailer.aiosmtplib.send", new=failing):
            with self.assertLogs("app.services.mailer", level="ERROR"):
                sent = asyncio.run(mailer.send_verification_email(_settings(True), "v@mail.com", "tok"))
        self.assertFalse(sent)


if __name__ == "__main__":
    unittest.main()
