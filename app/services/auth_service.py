"""Admin sign-in and the voter password + voter key + OTP login flow."""

from __future__ import annotations

import logging
from typing import Any

from app.config import settings
from app.services.common import SupabaseService, public_user
from app.services.mail_service import Mailer, otp_email
from app.services.voter_service import full_name
from app.utils.errors import (
    InvalidInputError,
    MailDeliveryError,
    NotFoundError,
    UnauthorizedError,
)
from app.utils.security import (
    ROLE_ADMIN,
    ROLE_STUDENT,
    create_session_token,
    generate_otp,
    hash_secret,
    verify_secret,
)
from app.utils.time import minutes_from_now, now_utc, to_iso
from supabase import Client

logger = logging.getLogger(__name__)

OTP_PURPOSE_EMAIL_VERIFICATION = "VOTER_EMAIL_VERIFICATION"
INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(value: Any) -> str:
    """Trim and lowercase an email address."""
    return value.strip().lower() if isinstance(value, str) else ""


class AdminAuthService:
    """Verify admin credentials and issue session tokens."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def authenticate(self, email: Any, password: Any) -> tuple[dict[str, Any], str]:
        """Return ``(admin, token)`` or raise UnauthorizedError."""
        clean_email = normalize_email(email)
        if not clean_email or not isinstance(password, str) or not password:
            raise UnauthorizedError(INVALID_CREDENTIALS)

        user = self.db.find_one("users", {"email": clean_email})
        if (
            not user
            or user.get("role") != ROLE_ADMIN
            or not verify_secret(password, user.get("password_hash"))
        ):
            logger.warning("Failed admin login for %s", clean_email)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        token = create_session_token(user["id"], ROLE_ADMIN, settings.admin_session_ttl_minutes)
        logger.info("Admin %s signed in", user["id"])
        return user, token


def admin_summary(user: dict[str, Any]) -> dict[str, Any]:
    """Session payload describing a signed-in admin."""
    return {
        "id": user["id"],
        "email": user["email"],
        "name": full_name(user),
        "role": user["role"],
    }


def voter_summary(user: dict[str, Any]) -> dict[str, Any]:
    """Identity payload returned to the voter client after login."""
    return {
        "id": user["id"],
        "email": user["email"],
        "first_name": user.get("first_name"),
        "last_name": user.get("last_name"),
        "student_id": user.get("student_id"),
        "department_id": user.get("department_id"),
    }


class VoterAuthService:
    """Voter login: credentials, then a one-time emailed code on first login."""

    def __init__(self, client: Client, mailer: Mailer) -> None:
        self.db = SupabaseService(client)
        self.mailer = mailer

    def _issue_token(self, voter: dict[str, Any]) -> str:
        return create_session_token(voter["id"], ROLE_STUDENT, settings.voter_session_ttl_minutes)

    def _send_otp(self, voter: dict[str, Any]) -> None:
        """Replace any pending code for this voter with a fresh one and email it."""
        otp = generate_otp()
        now_iso = to_iso(now_utc())
        self.db.execute(
            self.db.client.table("login_otps")
            .delete()
            .eq("email", voter["email"])
            .eq("purpose", OTP_PURPOSE_EMAIL_VERIFICATION)
            .eq("consumed", False)
            .gt("expires_at", now_iso),
            default=[],
        )
        self.db.insert_one(
            "login_otps",
            {
                "email": voter["email"],
                "code_hash": hash_secret(otp, rounds=settings.otp_bcrypt_rounds),
                "purpose": OTP_PURPOSE_EMAIL_VERIFICATION,
                "expires_at": to_iso(minutes_from_now(settings.otp_ttl_minutes)),
                "consumed": False,
            },
        )

        subject, html = otp_email(full_name(voter), otp, settings.otp_ttl_minutes)
        try:
            self.mailer.send(voter["email"], subject, html)
        except MailDeliveryError as exc:
            logger.error("OTP email for voter %s failed: %s", voter["id"], exc.message)
            raise MailDeliveryError("Failed to send OTP. Please try again later.") from exc
        logger.info("Verification code issued to voter %s", voter["id"])

    def login(
        self,
        email: Any,
        student_id: Any,
        password: Any,
        voter_key: Any,
    ) -> dict[str, Any]:
        """Check password and voter key; unverified voters get an OTP instead of a token."""
        clean_email = normalize_email(email)
        clean_student_id = student_id.strip() if isinstance(student_id, str) else ""
        if (not clean_email and not clean_student_id) or not password or not voter_key:
            raise InvalidInputError(
                "Email or Student ID, password, and voter key are required"
            )

        if clean_email:
            voter = self.db.find_one("users", {"email": clean_email})
        else:
            voter = self.db.find_one("users", {"student_id": clean_student_id})

        if not voter or voter.get("role") != ROLE_STUDENT:
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not voter.get("password_hash"):
            raise InvalidInputError("Voter account not properly set up")
        if not verify_secret(str(password), voter["password_hash"]):
            logger.warning("Failed voter login for voter %s", voter["id"])
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not voter.get("voter_key_hash"):
            raise InvalidInputError("Voter key not set up")
        if not verify_secret(str(voter_key).strip(), voter["voter_key_hash"]):
            logger.warning("Failed voter key for voter %s", voter["id"])
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if not voter.get("email_verified"):
            self._send_otp(voter)
            return {
                "requires_otp": True,
                "email": voter["email"],
                "message": "OTP sent to your email. Please verify to continue.",
            }

        logger.info("Voter %s signed in", voter["id"])
        return {
            "success": True,
            "voter": voter_summary(voter),
            "token": self._issue_token(voter),
        }

    def resend_otp(self, email: Any) -> dict[str, Any]:
        """Issue a new code for a voter who has not verified yet."""
        clean_email = normalize_email(email)
        if not clean_email:
            raise InvalidInputError("Email is required")

        voter = self.db.find_one("users", {"email": clean_email})
        if not voter or voter.get("role") != ROLE_STUDENT:
            raise NotFoundError("Voter")
        if voter.get("email_verified"):
            raise InvalidInputError("Email is already verified")

        self._send_otp(voter)
        return {"success": True, "message": "OTP has been resent to your email."}

    def verify_otp(self, email: Any, otp: Any) -> dict[str, Any]:
        """Consume the newest pending code and mark the voter's email verified."""
        clean_email = normalize_email(email)
        if not clean_email or not otp:
            raise InvalidInputError("Email and OTP are required")

        rows = self.db.execute(
            self.db.client.table("login_otps")
            .select("*")
            .eq("email", clean_email)
            .eq("purpose", OTP_PURPOSE_EMAIL_VERIFICATION)
            .eq("consumed", False)
            .gt("expires_at", to_iso(now_utc()))
            .order("created_at", desc=True)
            .limit(1),
            default=[],
        )
        if not rows:
            raise InvalidInputError("Invalid or expired OTP")

        record = rows[0]
        if not verify_secret(str(otp).strip(), record["code_hash"]):
            raise UnauthorizedError("Invalid OTP")

        self.db.update("login_otps", {"id": record["id"]}, {"consumed": True})

        voter = self.db.find_one("users", {"email": clean_email})
        if not voter or voter.get("role") != ROLE_STUDENT:
            raise NotFoundError("Voter")
        self.db.update("users", {"id": voter["id"]}, {"email_verified": True})
        voter["email_verified"] = True
        logger.info("Voter %s verified their email", voter["id"])

        return {
            "success": True,
            "message": "Email verified successfully",
            "voter": voter_summary(voter),
            "token": self._issue_token(voter),
        }

    def profile(self, voter: dict[str, Any]) -> dict[str, Any]:
        """Return the signed-in voter with their department."""
        payload = public_user(voter)
        department = None
        if voter.get("department_id"):
            department = self.db.find_one(
                "departments", {"id": voter["department_id"]}, columns="id,name"
            )
        payload["department"] = department
        return payload


def purge_stale_otps(client: Client) -> int:
    """Delete consumed and expired login codes; return how many were removed."""
    db = SupabaseService(client)
    consumed = db.delete("login_otps", {"consumed": True})
    expired = db.execute(
        db.client.table("login_otps").delete().lt("expires_at", to_iso(now_utc())),
        default=[],
    )
    return len(consumed) + len(expired)
