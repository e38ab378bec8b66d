"""Outbound mail for verification and password-reset links (SMTP via aiosmtplib)."""

from __future__ import annotations

import logging
from email.message import EmailMessage
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import aiosmtplib

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def _link(settings: Settings, path: str, token: str) -> str:
    return f"{settings.FRONTEND_URL}{path}?{urlencode({'token': token})}"


def build_message(settings: Settings, to: str, subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.MAIL_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)
    return message


async def send_mail(settings: Settings, message: EmailMessage) -> bool:
    """
    Deliver one message. Returns True on success, False on failure.

    Runs as a background task after the response is sent, so failures are
    logged rather than raised.
    """
    if not settings.MAIL_ENABLED:
        logger.info(
            "Mail delivery disabled; not sending",
            extra={"mail_to": message["To"], "mail_subject": message["Subject"]},
        )
        logger.debug("Undelivered mail body:\n%s", message.get_content())
        return False
    password = settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
    try:
        await aiosmtplib.send(
            message,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=password,
            use_tls=settings.SMTP_USE_TLS,
            start_tls=settings.SMTP_START_TLS and not settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT_SEC,
        )
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error(
            "Mail delivery failed",
            extra={"mail_to": message["To"], "mail_subject": message["Subject"], "reason": str(e)[:500]},
        )
        return False
    logger.info("Mail sent", extra={"mail_to": message["To"], "mail_subject": message["Subject"]})
    return True


async def send_verification_email(settings: Settings, to: str, token: str) -> bool:
    link = _link(settings, "/verify-email", token)
    body = (
        "Please confirm your email address by opening the link below:\n\n"
        f"{link}\n\n"
        "If you did not create an account, you can ignore this email."
    )
    return await send_mail(settings, build_message(settings, to, "Verify your email", body))


async def send_reset_password_email(settings: Settings, to: str, token: str) -> bool:
    link = _link(settings, "/reset-password", token)
    body = (
        "A password reset was requested for your account. Open the link below to choose a new password:\n\n"
        f"{link}\n\n"
        "If you did not request this, you can ignore this email; your password is unchanged."
    )
    return await send_mail(settings, build_message(settings, to, "Reset your password", body))
