"""Email diagnostics (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.config import settings
from app.dependencies import get_current_admin
from app.services.mail_service import Mailer, get_mailer, smtp_check_email

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.post("/test")
def send_test_email(mailer: Mailer = Depends(get_mailer)) -> dict:
    """Send a test message to the configured sender address."""
    sender = settings.email_user or ""
    subject, html = smtp_check_email(sender)
    mailer.send(sender, subject, html)
    return {
        "ok": True,
        "message": "Test email sent successfully! Check your inbox.",
        "sent_to": sender,
    }
