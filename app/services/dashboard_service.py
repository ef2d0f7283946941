"""Admin dashboard counters."""

from __future__ import annotations

from typing import Any

from app.config import settings
from app.services.common import SupabaseService
from app.services.election_service import STATUS_DRAFT, STATUS_RUNNING
from app.utils.security import ROLE_STUDENT
from supabase import Client


class DashboardService:
    """Headline numbers for the admin overview and settings pages."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def stats(self) -> dict[str, int]:
        """Return election, voter, and vote totals."""
        return {
            "running_elections": self.db.count("elections", {"status": STATUS_RUNNING}),
            "draft_elections": self.db.count("elections", {"status": STATUS_DRAFT}),
            "total_elections": self.db.count("elections"),
            "total_voters": self.db.count("users", {"role": ROLE_STUDENT}),
            "total_votes": self.db.count("votes"),
        }

    def system_info(self) -> dict[str, Any]:
        """Return record totals and configuration flags for the settings page."""
        return {
            "version": settings.app_version,
            "environment": settings.environment,
            "email_configured": settings.email_configured,
            "allow_src_voting": settings.allow_src_voting,
            "otp_ttl_minutes": settings.otp_ttl_minutes,
            "totals": {
                "users": self.db.count("users"),
                "elections": self.db.count("elections"),
                "departments": self.db.count("departments"),
                "votes": self.db.count("votes"),
            },
        }
