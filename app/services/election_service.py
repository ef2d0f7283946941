"""Election administration: creation, updates, deletion, and listings."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any

from app.services.common import SupabaseService, group_by, require_text
from app.utils.errors import ConflictError, InvalidInputError
from app.utils.time import now_utc, parse_timestamp, to_iso
from supabase import Client

CATEGORY_SRC = "SRC"
CATEGORY_DEPARTMENT = "DEPARTMENT"
CATEGORIES = (CATEGORY_SRC, CATEGORY_DEPARTMENT)

STATUS_DRAFT = "DRAFT"
STATUS_RUNNING = "RUNNING"
STATUS_ENDED = "ENDED"
STATUSES = (STATUS_DRAFT, STATUS_RUNNING, STATUS_ENDED)


def validate_election_fields(
    name: Any,
    category: Any,
    department_id: int | None,
    status: Any,
    start_at: datetime | None,
    end_at: datetime | None,
) -> dict[str, Any]:
    """Validate election fields and return the row payload.

    SRC elections never carry a department; DEPARTMENT elections always do.
    """
    clean_name = require_text(name, "Election name")

    if category not in CATEGORIES:
        raise InvalidInputError("Valid category (SRC or DEPARTMENT) is required")
    if category == CATEGORY_DEPARTMENT and not department_id:
        raise InvalidInputError("Department is required for DEPARTMENT elections")
    if category == CATEGORY_SRC and department_id:
        raise InvalidInputError("SRC elections cannot have a department")

    if start_at and end_at and end_at <= start_at:
        raise InvalidInputError("End date must be after start date")

    if status not in STATUSES:
        raise InvalidInputError("Invalid status")

    return {
        "name": clean_name,
        "category": category,
        "department_id": department_id if category == CATEGORY_DEPARTMENT else None,
        "status": status,
        "start_at": to_iso(start_at),
        "end_at": to_iso(end_at),
    }


class ElectionService:
    """Admin-side election lifecycle."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _hydrate(self, elections: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not elections:
            return []
        election_ids = [election["id"] for election in elections]
        departments = self.db.get_departments_map(e.get("department_id") for e in elections)
        creators = self.db.get_users_map(e.get("created_by_id") for e in elections)
        positions = self.db.select_in(
            "positions", "election_id", election_ids, columns="election_id"
        )
        votes = self.db.select_in("votes", "election_id", election_ids, columns="election_id")
        position_groups = group_by(positions, "election_id")
        vote_groups = group_by(votes, "election_id")

        hydrated = []
        for election in elections:
            payload = dict(election)
            payload["department"] = departments.get(election.get("department_id"))
            creator = creators.get(election.get("created_by_id"))
            payload["created_by"] = (
                {
                    "id": creator["id"],
                    "first_name": creator.get("first_name"),
                    "last_name": creator.get("last_name"),
                }
                if creator
                else None
            )
            payload["position_count"] = len(position_groups.get(election["id"], []))
            payload["vote_count"] = len(vote_groups.get(election["id"], []))
            hydrated.append(payload)
        return hydrated

    def _ensure_department(self, department_id: int | None) -> None:
        if department_id and not self.db.find_one("departments", {"id": department_id}):
            raise InvalidInputError("Invalid department")

    def list_elections(self) -> list[dict[str, Any]]:
        """Return every election, newest first."""
        rows = self.db.select_many("elections", order_by="created_at", descending=True)
        return self._hydrate(rows)

    def get(self, election_id: int) -> dict[str, Any]:
        """Return one hydrated election."""
        election = self.db.select_one("elections", {"id": election_id}, not_found_label="Election")
        return self._hydrate([election])[0]

    def create(
        self,
        admin_id: int,
        name: Any,
        category: Any,
        department_id: int | None = None,
        status: Any = None,
        start_at: datetime | None = None,
        end_at: datetime | None = None,
    ) -> dict[str, Any]:
        """Create an election owned by ``admin_id`` (DRAFT unless told otherwise)."""
        payload = validate_election_fields(
            name, category, department_id, status or STATUS_DRAFT, start_at, end_at
        )
        self._ensure_department(payload["department_id"])
        payload["created_by_id"] = admin_id
        election = self.db.insert_one("elections", payload)
        return self._hydrate([election])[0]

    def update(
        self,
        election_id: int,
        name: Any,
        category: Any,
        department_id: int | None,
        status: Any,
        start_at: datetime | None,
        end_at: datetime | None,
    ) -> dict[str, Any]:
        """Replace an election's editable fields."""
        self.db.select_one("elections", {"id": election_id}, not_found_label="Election")
        payload = validate_election_fields(
            name, category, department_id, status, start_at, end_at
        )
        self._ensure_department(payload["department_id"])
        self.db.update("elections", {"id": election_id}, payload)
        return self.get(election_id)

    def delete(self, election_id: int) -> None:
        """Delete an election with no positions and no votes."""
        self.db.select_one("elections", {"id": election_id}, not_found_label="Election")
        if self.db.count("positions", {"election_id": election_id}) > 0:
            raise ConflictError(
                "Cannot delete election with positions. Remove all positions first.",
                code="HAS_DEPENDENTS",
            )
        if self.db.count("votes", {"election_id": election_id}) > 0:
            raise ConflictError(
                "Cannot delete election with votes. Remove all votes first.",
                code="HAS_DEPENDENTS",
            )
        self.db.delete("elections", {"id": election_id})

    def positions_with_counts(self, election_id: int) -> list[dict[str, Any]]:
        """Return an election's positions with per-candidate vote counts."""
        self.db.select_one("elections", {"id": election_id}, not_found_label="Election")
        positions = self.db.select_many(
            "positions", filters={"election_id": election_id}, order_by="name"
        )
        position_ids = [position["id"] for position in positions]
        candidates = group_by(
            self.db.select_in(
                "candidates",
                "position_id",
                position_ids,
                columns="id,display_name,photo_url,position_id",
            ),
            "position_id",
        )
        votes = self.db.select_in(
            "votes", "position_id", position_ids, columns="position_id,candidate_id"
        )
        votes_by_position = group_by(votes, "position_id")

        result = []
        for position in positions:
            position_votes = votes_by_position.get(position["id"], [])
            per_candidate = Counter(vote["candidate_id"] for vote in position_votes)
            position_candidates = candidates.get(position["id"], [])
            result.append(
                {
                    "id": position["id"],
                    "name": position["name"],
                    "max_choices": position["max_choices"],
                    "total_votes": len(position_votes),
                    "candidate_count": len(position_candidates),
                    "candidates": [
                        {
                            "id": candidate["id"],
                            "display_name": candidate["display_name"],
                            "photo_url": candidate.get("photo_url"),
                            "vote_count": per_candidate.get(candidate["id"], 0),
                        }
                        for candidate in position_candidates
                    ],
                }
            )
        return result

    def close_expired(self, now: datetime | None = None) -> list[int]:
        """Mark RUNNING elections whose end time has passed as ENDED."""
        current = now or now_utc()
        running = self.db.select_many("elections", filters={"status": STATUS_RUNNING})
        expired = [
            election["id"]
            for election in running
            if (end := parse_timestamp(election.get("end_at"))) is not None and current > end
        ]
        for election_id in expired:
            self.db.update(
                "elections",
                {"id": election_id, "status": STATUS_RUNNING},
                {"status": STATUS_ENDED},
            )
        return expired
