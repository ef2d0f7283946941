"""Vote tallying and election results."""

from __future__ import annotations

from collections import Counter
from typing import Any

from app.services.common import SupabaseService, group_by
from app.services.election_service import CATEGORY_DEPARTMENT, STATUS_ENDED
from app.utils.errors import ForbiddenError, InvalidInputError
from supabase import Client


def tally_position(
    candidates: list[dict[str, Any]],
    votes: list[dict[str, Any]],
) -> dict[str, Any]:
    """Count votes per candidate for one position.

    Every listed candidate appears, including those with no votes. Candidates
    are ordered by vote count, highest first; equal counts keep listing order.
    Percentages are of the position total and are 0 when nobody voted.
    """
    counts = Counter(vote["candidate_id"] for vote in votes)
    total = sum(counts.get(candidate["id"], 0) for candidate in candidates)

    tallied = []
    for candidate in candidates:
        vote_count = counts.get(candidate["id"], 0)
        percentage = round(vote_count / total * 100, 2) if total else 0.0
        tallied.append({**candidate, "vote_count": vote_count, "percentage": percentage})

    tallied.sort(key=lambda item: item["vote_count"], reverse=True)
    return {"total_votes": total, "candidates": tallied}


class ResultsService:
    """Aggregate votes into per-position standings."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _positions(self, election_id: int) -> list[dict[str, Any]]:
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
        for rows in candidates.values():
            rows.sort(key=lambda row: row["id"])
        votes = group_by(
            self.db.select_many(
                "votes",
                filters={"election_id": election_id},
                columns="position_id,candidate_id",
            ),
            "position_id",
        )

        results = []
        for position in positions:
            position_candidates = [
                {
                    "id": candidate["id"],
                    "display_name": candidate["display_name"],
                    "photo_url": candidate.get("photo_url"),
                }
                for candidate in candidates.get(position["id"], [])
            ]
            tally = tally_position(position_candidates, votes.get(position["id"], []))
            results.append(
                {
                    "id": position["id"],
                    "name": position["name"],
                    "max_choices": position.get("max_choices", 1),
                    "total_votes": tally["total_votes"],
                    "candidate_count": len(position_candidates),
                    "candidates": tally["candidates"],
                }
            )
        return results

    def election_results(self, election_id: int) -> dict[str, Any]:
        """Return standings for every position of an election (admin view)."""
        election = self.db.select_one("elections", {"id": election_id}, not_found_label="Election")
        department = None
        if election.get("department_id"):
            department = self.db.find_one(
                "departments", {"id": election["department_id"]}, columns="id,name"
            )
        return {
            "election": {
                "id": election["id"],
                "name": election["name"],
                "category": election["category"],
                "status": election["status"],
                "department": department,
                "total_votes": self.db.count("votes", {"election_id": election_id}),
            },
            "positions": self._positions(election_id),
        }

    def voter_results(self, voter: dict[str, Any], election_id: int) -> dict[str, Any]:
        """Return standings a voter may see: ended elections of their department."""
        election = self.db.select_one("elections", {"id": election_id}, not_found_label="Election")
        if election["status"] != STATUS_ENDED:
            raise ForbiddenError("Results are only available for ended elections")
        if election["category"] != CATEGORY_DEPARTMENT:
            raise ForbiddenError("Only department elections are available")
        if not voter.get("department_id") or election["department_id"] != voter["department_id"]:
            raise ForbiddenError("You are not eligible to view results for this election")

        results = self.election_results(election_id)
        summary = results["election"]
        return {
            "election": {
                "id": summary["id"],
                "name": summary["name"],
                "category": summary["category"],
                "department": summary["department"],
            },
            "positions": [
                {key: position[key] for key in ("id", "name", "total_votes", "candidates")}
                for position in results["positions"]
            ],
        }

    def voter_ended_elections(self, voter: dict[str, Any]) -> list[dict[str, Any]]:
        """List ended department elections a voter can open results for."""
        department_id = voter.get("department_id")
        if not department_id:
            raise InvalidInputError("Voter must belong to a department")

        elections = self.db.select_many(
            "elections",
            filters={
                "status": STATUS_ENDED,
                "category": CATEGORY_DEPARTMENT,
                "department_id": department_id,
            },
            order_by="end_at",
            descending=True,
        )
        if not elections:
            return []
        department = self.db.find_one("departments", {"id": department_id}, columns="id,name")
        election_ids = [election["id"] for election in elections]
        positions = group_by(
            self.db.select_in("positions", "election_id", election_ids, columns="election_id"),
            "election_id",
        )
        votes = group_by(
            self.db.select_in("votes", "election_id", election_ids, columns="election_id"),
            "election_id",
        )
        return [
            {
                **election,
                "department": department,
                "position_count": len(positions.get(election["id"], [])),
                "vote_count": len(votes.get(election["id"], [])),
            }
            for election in elections
        ]
