"""Ballot admission and the voter's view of open elections."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from app.config import settings
from app.services.common import SupabaseService, group_by, is_duplicate
from app.services.election_service import CATEGORY_DEPARTMENT, CATEGORY_SRC, STATUS_RUNNING
from app.utils.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    VotingClosedError,
)
from app.utils.security import ROLE_STUDENT
from app.utils.time import now_utc, parse_timestamp, within_window
from supabase import Client

logger = logging.getLogger(__name__)

ALREADY_VOTED = "You have already voted for this position"


def is_eligible(election: dict[str, Any], voter: dict[str, Any]) -> bool:
    """Return whether ``voter`` may vote in ``election``.

    Department elections are open to students of that department. SRC
    elections are only open when ``allow_src_voting`` is enabled.
    """
    if election["category"] == CATEGORY_SRC:
        return settings.allow_src_voting
    return (
        election["category"] == CATEGORY_DEPARTMENT
        and voter.get("department_id") is not None
        and election.get("department_id") == voter["department_id"]
    )


def position_sort_key(position: dict[str, Any]) -> tuple[int, str]:
    """President positions first, then alphabetical (case-insensitive)."""
    name = str(position["name"]).lower()
    return (0 if "president" in name else 1, name)


class VotingService:
    """Validate and record ballots, one per voter per position."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _check_window(self, election: dict[str, Any], now: datetime) -> None:
        if election["status"] != STATUS_RUNNING:
            raise VotingClosedError("Election is not currently running")
        start_at = parse_timestamp(election.get("start_at"))
        if start_at is not None and start_at > now:
            raise VotingClosedError("Election has not started yet")
        end_at = parse_timestamp(election.get("end_at"))
        if end_at is not None and end_at < now:
            raise VotingClosedError("Election has ended")

    def _check_eligibility(self, election: dict[str, Any], voter: dict[str, Any]) -> None:
        if election["category"] != CATEGORY_DEPARTMENT and not (
            election["category"] == CATEGORY_SRC and settings.allow_src_voting
        ):
            raise ForbiddenError("Only department elections are available for voting")
        if not is_eligible(election, voter):
            raise ForbiddenError("You are not eligible to vote in this election")

    def cast_vote(
        self,
        voter_id: int,
        election_id: int,
        position_id: int,
        candidate_id: int,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Admit one ballot after checking every precondition in order.

        The unique ``(voter_id, election_id, position_id)`` constraint is the
        final arbiter: a duplicate that slips past the pre-check is reported
        exactly like one caught by it.
        """
        current = now or now_utc()

        voter = self.db.find_one("users", {"id": voter_id})
        if not voter or voter.get("role") != ROLE_STUDENT:
            raise NotFoundError("Voter")

        election = self.db.select_one("elections", {"id": election_id}, not_found_label="Election")
        self._check_window(election, current)
        self._check_eligibility(election, voter)

        position = self.db.find_one("positions", {"id": position_id})
        if not position or position["election_id"] != election["id"]:
            raise InvalidInputError("Invalid position")

        candidate = self.db.find_one("candidates", {"id": candidate_id})
        if not candidate or candidate["position_id"] != position["id"]:
            raise InvalidInputError("Invalid candidate")

        ballot_key = {
            "voter_id": voter["id"],
            "election_id": election["id"],
            "position_id": position["id"],
        }
        if self.db.find_one("votes", ballot_key, columns="id"):
            raise ConflictError(ALREADY_VOTED, code="ALREADY_VOTED")

        try:
            vote = self.db.insert_one("votes", {**ballot_key, "candidate_id": candidate["id"]})
        except ConflictError as exc:
            if is_duplicate(exc):
                logger.info(
                    "Concurrent duplicate vote rejected voter=%s election=%s position=%s",
                    voter["id"],
                    election["id"],
                    position["id"],
                )
                raise ConflictError(ALREADY_VOTED, code="ALREADY_VOTED") from exc
            raise

        logger.info(
            "Vote recorded election=%s position=%s", election["id"], position["id"]
        )
        return {
            **vote,
            "candidate": {"id": candidate["id"], "display_name": candidate["display_name"]},
            "position": {"id": position["id"], "name": position["name"]},
        }

    def open_elections(
        self, voter: dict[str, Any], now: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Running elections inside their window that the voter may vote in."""
        if not voter.get("department_id") and not settings.allow_src_voting:
            raise InvalidInputError("Voter must belong to a department")

        current = now or now_utc()
        running = self.db.select_many(
            "elections",
            filters={"status": STATUS_RUNNING},
            order_by="created_at",
            descending=True,
        )
        elections = [
            election
            for election in running
            if within_window(election.get("start_at"), election.get("end_at"), current)
            and is_eligible(election, voter)
        ]
        if not elections:
            return []

        election_ids = [election["id"] for election in elections]
        departments = self.db.get_departments_map(e.get("department_id") for e in elections)
        positions = self.db.select_in("positions", "election_id", election_ids)
        candidates = group_by(
            self.db.select_in(
                "candidates",
                "position_id",
                [position["id"] for position in positions],
                columns="id,display_name,photo_url,manifesto,position_id",
            ),
            "position_id",
        )
        votes = self.db.select_in(
            "votes",
            "election_id",
            election_ids,
            columns="election_id,position_id",
            filters={"voter_id": voter["id"]},
        )
        voted = {(vote["election_id"], vote["position_id"]) for vote in votes}
        positions_by_election = group_by(positions, "election_id")

        result = []
        for election in elections:
            election_positions = []
            for position in sorted(
                positions_by_election.get(election["id"], []), key=position_sort_key
            ):
                position_candidates = [
                    {key: value for key, value in candidate.items() if key != "position_id"}
                    for candidate in candidates.get(position["id"], [])
                ]
                election_positions.append(
                    {
                        **position,
                        "candidates": position_candidates,
                        "candidate_count": len(position_candidates),
                        "has_voted": (election["id"], position["id"]) in voted,
                    }
                )
            result.append(
                {
                    **election,
                    "department": departments.get(election.get("department_id")),
                    "positions": election_positions,
                    "position_count": len(election_positions),
                    "has_voted": bool(election_positions)
                    and all(position["has_voted"] for position in election_positions),
                    "has_any_votes": any(
                        election_id == election["id"] for election_id, _ in voted
                    ),
                }
            )
        return result
