"""Outgoing email over SMTP."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from html import escape

from app.config import settings
from app.utils.errors import MailDeliveryError
from app.utils.time import now_utc

logger = logging.getLogger(__name__)


class Mailer:
    """Send HTML email through the configured SMTP relay (STARTTLS)."""

    def send(self, to: str, subject: str, html: str) -> None:
        """Deliver one message or raise MailDeliveryError."""
        if not settings.email_configured:
            raise MailDeliveryError(
                "Email configuration missing: EMAIL_USER and EMAIL_PASS must be set"
            )

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = formataddr((settings.mail_from_name, settings.email_user or ""))
        message["To"] = to
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(
                settings.smtp_host,
                settings.smtp_port,
                timeout=settings.smtp_timeout_seconds,
            ) as smtp:
                smtp.starttls()
                smtp.login(settings.email_user or "", settings.email_pass or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email to %s failed: %s", to, exc)
            raise MailDeliveryError(str(exc) or "Email could not be sent") from exc

        logger.info("Email sent to %s (%s)", to, subject)


def login_url() -> str:
    """Public voter login URL included in credential emails."""
    return f"{settings.nextauth_url.rstrip('/')}/voter/login"


def credentials_email(name: str, email: str, password: str, voter_key: str) -> tuple[str, str]:
    """Return ``(subject, html)`` for a new voter's credentials."""
    url = login_url()
    html = (
        "<div style=\"font-family: Arial, sans-serif;\">"
        "<h2>Welcome to UniMak Voting System</h2>"
        f"<p>Dear {escape(name)},</p>"
        "<p>Your voter account has been created. Use these credentials to log in:</p>"
        f"<p><strong>Email:</strong> {escape(email)}<br>"
        f"<strong>Password:</strong> {escape(password)}<br>"
        f"<strong>Voter Key:</strong> {escape(voter_key)}</p>"
        "<p>Keep these credentials secure and do not share them.</p>"
        "<p>On your first login you will verify your email with a one-time code.</p>"
        f"<p>Log in at: <a href=\"{escape(url)}\">{escape(url)}</a></p>"
        "<p>UniMak Electoral Commission</p>"
        "</div>"
    )
    return "Your UniMak Voting System Credentials", html


def otp_email(name: str, otp: str, ttl_minutes: int) -> tuple[str, str]:
    """Return ``(subject, html)`` for an email verification code."""
    html = (
        "<div style=\"font-family: Arial, sans-serif;\">"
        "<h2>Email Verification</h2>"
        f"<p>Dear {escape(name)},</p>"
        "<p>Use this code to verify your email and complete your login:</p>"
        f"<h1 style=\"letter-spacing: 5px;\">{escape(otp)}</h1>"
        f"<p>This code will expire in {ttl_minutes} minutes.</p>"
        "<p>If you did not request this code, ignore this email.</p>"
        "</div>"
    )
    return "UniMak Voting System - Email Verification OTP", html


def smtp_check_email(sender: str) -> tuple[str, str]:
    """Return ``(subject, html)`` for the SMTP configuration check."""
    html = (
        "<div style=\"font-family: Arial, sans-serif;\">"
        "<h2>Email Test Successful</h2>"
        "<p>If you received this email, your email configuration is working correctly.</p>"
        f"<p><strong>From:</strong> {escape(sender)}<br>"
        f"<strong>Time:</strong> {now_utc().strftime('%Y-%m-%d %H:%M UTC')}</p>"
        "<p>You can now send voter credentials and OTP codes.</p>"
        "</div>"
    )
    return "UNIMAK OVS - Email Test", html


def get_mailer() -> Mailer:
    """FastAPI dependency returning the SMTP mailer."""
    return Mailer()
