"""Admin-side voter (student account) management."""

from __future__ import annotations

import csv
import io
import logging
from typing import Any

from app.services.common import (
    SupabaseService,
    is_duplicate,
    public_user,
    require_text,
)
from app.services.mail_service import Mailer, credentials_email
from app.utils.errors import ConflictError, InvalidInputError, MailDeliveryError, NotFoundError
from app.utils.security import (
    ROLE_STUDENT,
    generate_password,
    generate_voter_key,
    hash_secret,
)
from app.utils.time import now_utc, to_iso
from supabase import Client

logger = logging.getLogger(__name__)

EXPORT_HEADERS = ["Student ID", "First Name", "Last Name", "Department", "Email"]


def full_name(user: dict[str, Any]) -> str:
    """Return ``"First Last"`` for a user row."""
    return f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()


class VoterService:
    """Create, edit, and remove student voters, and deliver their credentials."""

    def __init__(self, client: Client, mailer: Mailer) -> None:
        self.db = SupabaseService(client)
        self.mailer = mailer

    def _hydrate(self, voters: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not voters:
            return []
        departments = self.db.get_departments_map(v.get("department_id") for v in voters)
        votes = self.db.count_by("votes", "voter_id")
        candidacies = self.db.count_by("candidates", "user_id")

        hydrated = []
        for voter in voters:
            payload = public_user(voter)
            payload["department"] = departments.get(voter.get("department_id"))
            payload["vote_count"] = votes.get(voter["id"], 0)
            payload["candidacy_count"] = candidacies.get(voter["id"], 0)
            hydrated.append(payload)
        return hydrated

    def _get_row(self, voter_id: int) -> dict[str, Any]:
        voter = self.db.find_one("users", {"id": voter_id})
        if not voter or voter.get("role") != ROLE_STUDENT:
            raise NotFoundError("Voter")
        return voter

    def _validated(
        self,
        email: Any,
        first_name: Any,
        last_name: Any,
        student_id: Any,
        department_id: int | None,
        exclude_id: int | None = None,
    ) -> dict[str, Any]:
        clean_email = require_text(email, "Email").lower()
        clean_first = require_text(first_name, "First name")
        clean_last = require_text(last_name, "Last name")
        clean_student_id = require_text(student_id, "Student ID")

        if department_id and not self.db.find_one("departments", {"id": department_id}):
            raise InvalidInputError("Invalid department")

        by_email = self.db.find_one("users", {"email": clean_email}, columns="id")
        if by_email and by_email["id"] != exclude_id:
            raise ConflictError("A user with this email already exists", code="DUPLICATE")
        by_student_id = self.db.find_one("users", {"student_id": clean_student_id}, columns="id")
        if by_student_id and by_student_id["id"] != exclude_id:
            raise ConflictError("A user with this student ID already exists", code="DUPLICATE")

        return {
            "email": clean_email,
            "first_name": clean_first,
            "last_name": clean_last,
            "student_id": clean_student_id,
            "department_id": department_id or None,
        }

    def _deliver_credentials(
        self, voter: dict[str, Any], password: str, voter_key: str
    ) -> dict[str, Any]:
        """Email credentials; failure is reported, never raised."""
        subject, html = credentials_email(full_name(voter), voter["email"], password, voter_key)
        try:
            self.mailer.send(voter["email"], subject, html)
        except MailDeliveryError as exc:
            logger.warning("Credentials email for voter %s not sent: %s", voter["id"], exc.message)
            return {
                "email_sent": False,
                "warning": (
                    "Voter saved but email could not be sent. "
                    "Please provide credentials manually."
                ),
                "email_error": exc.message,
            }
        return {"email_sent": True}

    def list_voters(self) -> list[dict[str, Any]]:
        """Return every student voter, newest first."""
        rows = self.db.select_many(
            "users",
            filters={"role": ROLE_STUDENT},
            order_by="created_at",
            descending=True,
        )
        return self._hydrate(rows)

    def get(self, voter_id: int) -> dict[str, Any]:
        """Return one voter with department and usage counts."""
        return self._hydrate([self._get_row(voter_id)])[0]

    def create(
        self,
        email: Any,
        first_name: Any,
        last_name: Any,
        student_id: Any,
        department_id: int | None = None,
    ) -> dict[str, Any]:
        """Create a voter, then email the generated password and voter key.

        The account is kept even when the email fails; the plaintext
        credentials are only ever returned in this response.
        """
        payload = self._validated(email, first_name, last_name, student_id, department_id)
        password = generate_password()
        voter_key = generate_voter_key()
        payload.update(
            {
                "role": ROLE_STUDENT,
                "password_hash": hash_secret(password),
                "voter_key_hash": hash_secret(voter_key),
                "email_verified": False,
            }
        )
        try:
            voter = self.db.insert_one("users", payload)
        except ConflictError as exc:
            if is_duplicate(exc):
                raise ConflictError("A voter with this email or student ID already exists",
                                    code="DUPLICATE") from exc
            raise
        logger.info("Voter %s created", voter["id"])

        result = {
            "voter": self._hydrate([voter])[0],
            "password": password,
            "voter_key": voter_key,
        }
        result.update(self._deliver_credentials(voter, password, voter_key))
        return result

    def update(
        self,
        voter_id: int,
        email: Any,
        first_name: Any,
        last_name: Any,
        student_id: Any,
        department_id: int | None = None,
    ) -> dict[str, Any]:
        """Replace a voter's profile; omitting the department clears it."""
        self._get_row(voter_id)
        payload = self._validated(
            email, first_name, last_name, student_id, department_id, exclude_id=voter_id
        )
        try:
            self.db.update("users", {"id": voter_id}, payload)
        except ConflictError as exc:
            if is_duplicate(exc):
                raise ConflictError("A voter with this email or student ID already exists",
                                    code="DUPLICATE") from exc
            raise
        return self.get(voter_id)

    def delete(self, voter_id: int) -> None:
        """Delete a voter who has neither voted nor stood as a candidate."""
        self._get_row(voter_id)
        votes = self.db.count("votes", {"voter_id": voter_id})
        candidacies = self.db.count("candidates", {"user_id": voter_id})
        if votes > 0 or candidacies > 0:
            raise ConflictError(
                "Cannot delete voter with associated votes or candidates",
                code="HAS_DEPENDENTS",
            )
        self.db.delete("users", {"id": voter_id})

    def reset_credentials(self, voter_id: int) -> dict[str, Any]:
        """Issue a fresh password and voter key and email them again.

        Stamps ``credentials_reset_at`` so sessions signed earlier stop working.
        """
        voter = self._get_row(voter_id)
        password = generate_password()
        voter_key = generate_voter_key()
        self.db.update(
            "users",
            {"id": voter_id},
            {
                "password_hash": hash_secret(password),
                "voter_key_hash": hash_secret(voter_key),
                "email_verified": False,
                "credentials_reset_at": to_iso(now_utc()),
            },
        )
        logger.info("Credentials reset for voter %s", voter_id)

        result = {
            "voter": self.get(voter_id),
            "password": password,
            "voter_key": voter_key,
        }
        result.update(self._deliver_credentials(voter, password, voter_key))
        return result

    def export_csv(self) -> str:
        """Render all voters as CSV (credentials are never stored in plaintext)."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(EXPORT_HEADERS)
        for voter in self.list_voters():
            department = voter.get("department") or {}
            writer.writerow(
                [
                    voter.get("student_id") or "",
                    voter.get("first_name") or "",
                    voter.get("last_name") or "",
                    department.get("name") or "",
                    voter.get("email") or "",
                ]
            )
        return buffer.getvalue()


def export_filename(prefix: str = "voters") -> str:
    """Return the dated download name for a voter export."""
    return f"{prefix}_{now_utc().date().isoformat()}.csv"
