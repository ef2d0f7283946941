"""Candidate management."""

from __future__ import annotations

from typing import Any

from app.services.common import SupabaseService, group_by, index_by, optional_text, require_text
from app.utils.errors import ConflictError, InvalidInputError, NotFoundError
from app.utils.security import ROLE_STUDENT
from supabase import Client


class CandidateService:
    """Candidate CRUD; a candidate may be linked to a student account."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _hydrate(self, candidates: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not candidates:
            return []
        positions = index_by(
            self.db.select_in(
                "positions",
                "id",
                [candidate["position_id"] for candidate in candidates],
                columns="id,name,election_id,max_choices",
            )
        )
        elections = index_by(
            self.db.select_in(
                "elections",
                "id",
                [position["election_id"] for position in positions.values()],
                columns="id,name,category",
            )
        )
        users = self.db.get_users_map(candidate.get("user_id") for candidate in candidates)
        votes = group_by(
            self.db.select_in(
                "votes",
                "candidate_id",
                [candidate["id"] for candidate in candidates],
                columns="candidate_id",
            ),
            "candidate_id",
        )

        hydrated = []
        for candidate in candidates:
            payload = dict(candidate)
            position = positions.get(candidate["position_id"])
            if position:
                position = dict(position)
                position["election"] = elections.get(position["election_id"])
            payload["position"] = position
            user = users.get(candidate.get("user_id"))
            payload["user"] = (
                {
                    "id": user["id"],
                    "first_name": user.get("first_name"),
                    "last_name": user.get("last_name"),
                    "student_id": user.get("student_id"),
                    "email": user.get("email"),
                }
                if user
                else None
            )
            payload["vote_count"] = len(votes.get(candidate["id"], []))
            hydrated.append(payload)
        return hydrated

    def _validated(
        self,
        display_name: Any,
        position_id: int | None,
        user_id: int | None,
        manifesto: Any,
        photo_url: Any,
    ) -> dict[str, Any]:
        clean_name = require_text(display_name, "Display name")
        if not position_id:
            raise InvalidInputError("Valid position is required")
        if not self.db.find_one("positions", {"id": position_id}):
            raise NotFoundError("Position")
        if user_id:
            user = self.db.find_one("users", {"id": user_id})
            if not user or user.get("role") != ROLE_STUDENT:
                raise InvalidInputError("Invalid student user")
        return {
            "display_name": clean_name,
            "position_id": position_id,
            "user_id": user_id or None,
            "manifesto": optional_text(manifesto),
            "photo_url": optional_text(photo_url),
        }

    def list_candidates(self) -> list[dict[str, Any]]:
        """Return every candidate, newest first."""
        rows = self.db.select_many("candidates", order_by="created_at", descending=True)
        return self._hydrate(rows)

    def get(self, candidate_id: int) -> dict[str, Any]:
        """Return one hydrated candidate."""
        candidate = self.db.select_one(
            "candidates", {"id": candidate_id}, not_found_label="Candidate"
        )
        return self._hydrate([candidate])[0]

    def create(
        self,
        display_name: Any,
        position_id: int | None,
        user_id: int | None = None,
        manifesto: Any = None,
        photo_url: Any = None,
    ) -> dict[str, Any]:
        """Register a candidate for a position."""
        payload = self._validated(display_name, position_id, user_id, manifesto, photo_url)
        candidate = self.db.insert_one("candidates", payload)
        return self._hydrate([candidate])[0]

    def update(
        self,
        candidate_id: int,
        display_name: Any,
        position_id: int | None,
        user_id: int | None = None,
        manifesto: Any = None,
        photo_url: Any = None,
    ) -> dict[str, Any]:
        """Replace a candidate's details."""
        current = self.db.select_one(
            "candidates", {"id": candidate_id}, not_found_label="Candidate"
        )
        payload = self._validated(display_name, position_id, user_id, manifesto, photo_url)
        if payload["position_id"] != current["position_id"]:
            if self.db.count("votes", {"candidate_id": candidate_id}) > 0:
                raise ConflictError(
                    "Cannot move a candidate that has votes to another position.",
                    code="HAS_DEPENDENTS",
                )
        self.db.update("candidates", {"id": candidate_id}, payload)
        return self.get(candidate_id)

    def delete(self, candidate_id: int) -> None:
        """Delete a candidate nobody has voted for."""
        self.db.select_one("candidates", {"id": candidate_id}, not_found_label="Candidate")
        if self.db.count("votes", {"candidate_id": candidate_id}) > 0:
            raise ConflictError(
                "Cannot delete candidate with votes. Remove all votes first.",
                code="HAS_DEPENDENTS",
            )
        self.db.delete("candidates", {"id": candidate_id})
