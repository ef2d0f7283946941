"""Ballot position management."""

from __future__ import annotations

from typing import Any

from app.services.common import SupabaseService, group_by, index_by, is_duplicate, require_text
from app.utils.errors import ConflictError, InvalidInputError, NotFoundError
from supabase import Client

DUPLICATE_NAME = "A position with this name already exists in this election"


def normalize_max_choices(value: int | None) -> int:
    """Default to a single choice and reject anything below one."""
    if value is None:
        return 1
    if value < 1:
        raise InvalidInputError("Max choices must be at least 1")
    return value


class PositionService:
    """Position CRUD scoped to elections."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _hydrate(self, positions: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not positions:
            return []
        position_ids = [position["id"] for position in positions]
        elections = index_by(
            self.db.select_in(
                "elections",
                "id",
                [position["election_id"] for position in positions],
                columns="id,name,category",
            )
        )
        candidates = group_by(
            self.db.select_in("candidates", "position_id", position_ids, columns="position_id"),
            "position_id",
        )
        votes = group_by(
            self.db.select_in("votes", "position_id", position_ids, columns="position_id"),
            "position_id",
        )

        hydrated = []
        for position in positions:
            payload = dict(position)
            payload["election"] = elections.get(position["election_id"])
            payload["candidate_count"] = len(candidates.get(position["id"], []))
            payload["vote_count"] = len(votes.get(position["id"], []))
            hydrated.append(payload)
        return hydrated

    def _validated(self, name: Any, election_id: int | None, max_choices: int | None) -> dict:
        clean_name = require_text(name, "Position name")
        if not election_id:
            raise InvalidInputError("Valid election is required")
        choices = normalize_max_choices(max_choices)
        if not self.db.find_one("elections", {"id": election_id}):
            raise NotFoundError("Election")
        return {"name": clean_name, "election_id": election_id, "max_choices": choices}

    def _ensure_unique_name(
        self, election_id: int, name: str, exclude_id: int | None = None
    ) -> None:
        existing = self.db.find_one("positions", {"election_id": election_id, "name": name})
        if existing and existing["id"] != exclude_id:
            raise ConflictError(DUPLICATE_NAME, code="DUPLICATE")

    def list_positions(self) -> list[dict[str, Any]]:
        """Return every position, newest first."""
        rows = self.db.select_many("positions", order_by="created_at", descending=True)
        return self._hydrate(rows)

    def get(self, position_id: int) -> dict[str, Any]:
        """Return one hydrated position."""
        position = self.db.select_one("positions", {"id": position_id}, not_found_label="Position")
        return self._hydrate([position])[0]

    def create(self, name: Any, election_id: int | None, max_choices: int | None) -> dict[str, Any]:
        """Create a position inside an election."""
        payload = self._validated(name, election_id, max_choices)
        self._ensure_unique_name(payload["election_id"], payload["name"])
        try:
            position = self.db.insert_one("positions", payload)
        except ConflictError as exc:
            if is_duplicate(exc):
                raise ConflictError(DUPLICATE_NAME, code="DUPLICATE") from exc
            raise
        return self._hydrate([position])[0]

    def update(
        self,
        position_id: int,
        name: Any,
        election_id: int | None,
        max_choices: int | None,
    ) -> dict[str, Any]:
        """Replace a position's name, election, and choice limit."""
        current = self.db.select_one("positions", {"id": position_id}, not_found_label="Position")
        payload = self._validated(name, election_id, max_choices)
        if payload["election_id"] != current["election_id"]:
            if self.db.count("votes", {"position_id": position_id}) > 0:
                raise ConflictError(
                    "Cannot move a position that has votes to another election.",
                    code="HAS_DEPENDENTS",
                )
        self._ensure_unique_name(payload["election_id"], payload["name"], exclude_id=position_id)
        try:
            self.db.update("positions", {"id": position_id}, payload)
        except ConflictError as exc:
            if is_duplicate(exc):
                raise ConflictError(DUPLICATE_NAME, code="DUPLICATE") from exc
            raise
        return self.get(position_id)

    def delete(self, position_id: int) -> None:
        """Delete a position with no candidates and no votes."""
        self.db.select_one("positions", {"id": position_id}, not_found_label="Position")
        if self.db.count("candidates", {"position_id": position_id}) > 0:
            raise ConflictError(
                "Cannot delete position with candidates. Remove all candidates first.",
                code="HAS_DEPENDENTS",
            )
        if self.db.count("votes", {"position_id": position_id}) > 0:
            raise ConflictError(
                "Cannot delete position with votes. Remove all votes first.",
                code="HAS_DEPENDENTS",
            )
        self.db.delete("positions", {"id": position_id})
