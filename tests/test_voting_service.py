"""Vote admission tests."""

from __future__ import annotations

import pytest

from app.config import settings
from app.services.voting_service import ALREADY_VOTED, VotingService, position_sort_key
from app.utils.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    VotingClosedError,
)
from fakes import FakeSupabase, Records


@pytest.fixture
def ballot(records: Records) -> dict:
    """A running CS election with one position, two candidates, and a CS voter."""
    cs = records.department()
    election = records.election(cs["id"])
    position = records.position(election["id"])
    return {
        "department": cs,
        "election": election,
        "position": position,
        "a": records.candidate(position["id"], "Candidate A"),
        "b": records.candidate(position["id"], "Candidate B"),
        "voter": records.voter(cs["id"]),
    }


def _cast(db: FakeSupabase, ballot: dict, **overrides) -> dict:
    params = {
        "voter_id": ballot["voter"]["id"],
        "election_id": ballot["election"]["id"],
        "position_id": ballot["position"]["id"],
        "candidate_id": ballot["a"]["id"],
    }
    params.update(overrides)
    return VotingService(db).cast_vote(**params)


def test_cast_vote_records_ballot(db: FakeSupabase, ballot: dict) -> None:
    """A valid ballot is stored with candidate and position summaries."""
    vote = _cast(db, ballot)
    assert vote["candidate"] == {"id": ballot["a"]["id"], "display_name": "Candidate A"}
    assert vote["position"]["name"] == "President"
    assert len(db.rows("votes")) == 1


def test_second_vote_for_same_position_is_rejected(db: FakeSupabase, ballot: dict) -> None:
    """The pre-check reports an existing ballot as ALREADY_VOTED."""
    _cast(db, ballot)
    with pytest.raises(ConflictError) as exc_info:
        _cast(db, ballot, candidate_id=ballot["b"]["id"])
    assert exc_info.value.code == "ALREADY_VOTED"
    assert exc_info.value.message == ALREADY_VOTED
    assert len(db.rows("votes")) == 1


def test_insert_time_duplicate_is_reported_as_already_voted(
    db: FakeSupabase, ballot: dict, records: Records
) -> None:
    """A concurrent ballot that slips past the pre-check hits the unique constraint."""
    service = VotingService(db)
    real_find_one = service.db.find_one

    def find_one_racing(table, filters, columns="*"):
        if table == "votes":
            records.vote(ballot["voter"], ballot["election"], ballot["position"], ballot["b"])
            return None
        return real_find_one(table, filters, columns=columns)

    service.db.find_one = find_one_racing

    with pytest.raises(ConflictError) as exc_info:
        service.cast_vote(
            voter_id=ballot["voter"]["id"],
            election_id=ballot["election"]["id"],
            position_id=ballot["position"]["id"],
            candidate_id=ballot["a"]["id"],
        )
    assert exc_info.value.code == "ALREADY_VOTED"
    assert [v["candidate_id"] for v in db.rows("votes")] == [ballot["b"]["id"]]


@pytest.mark.parametrize(
    ("status", "start_offset", "end_offset", "message"),
    [
        ("DRAFT", -60, 60, "Election is not currently running"),
        ("ENDED", -60, 60, "Election is not currently running"),
        ("RUNNING", 30, 60, "Election has not started yet"),
        ("RUNNING", -60, -1, "Election has ended"),
    ],
)
def test_votes_outside_window_or_status_are_rejected(
    db: FakeSupabase,
    records: Records,
    status: str,
    start_offset: int,
    end_offset: int,
    message: str,
) -> None:
    """Status must be RUNNING and now must fall inside the window."""
    cs = records.department()
    election = records.election(
        cs["id"], status=status, start_offset_minutes=start_offset, end_offset_minutes=end_offset
    )
    position = records.position(election["id"])
    candidate = records.candidate(position["id"], "A")
    voter = records.voter(cs["id"])

    with pytest.raises(VotingClosedError) as exc_info:
        VotingService(db).cast_vote(voter["id"], election["id"], position["id"], candidate["id"])
    assert exc_info.value.message == message
    assert db.rows("votes") == []


def test_open_ended_window_accepts_votes(db: FakeSupabase, records: Records) -> None:
    """Unset start and end times do not block a running election."""
    cs = records.department()
    election = records.election(cs["id"], start_offset_minutes=None, end_offset_minutes=None)
    position = records.position(election["id"])
    candidate = records.candidate(position["id"], "A")
    voter = records.voter(cs["id"])
    VotingService(db).cast_vote(voter["id"], election["id"], position["id"], candidate["id"])
    assert len(db.rows("votes")) == 1


def test_eligibility_checks(db: FakeSupabase, records: Records, ballot: dict) -> None:
    """SRC elections and other departments' elections are refused."""
    src = records.election(None, name="SRC", category="SRC")
    src_position = records.position(src["id"])
    src_candidate = records.candidate(src_position["id"], "S")
    with pytest.raises(ForbiddenError) as exc_info:
        _cast(
            db,
            ballot,
            election_id=src["id"],
            position_id=src_position["id"],
            candidate_id=src_candidate["id"],
        )
    assert exc_info.value.message == "Only department elections are available for voting"

    masscom = records.department("Mass Communication")
    outsider = records.voter(masscom["id"], email="bob@unimak.edu.sl", student_id="S002")
    with pytest.raises(ForbiddenError) as exc_info:
        _cast(db, ballot, voter_id=outsider["id"])
    assert exc_info.value.message == "You are not eligible to vote in this election"


def test_src_voting_when_enabled(
    db: FakeSupabase, records: Records, ballot: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    """allow_src_voting opens SRC elections to every student."""
    monkeypatch.setattr(settings, "allow_src_voting", True)
    src = records.election(None, name="SRC", category="SRC")
    position = records.position(src["id"])
    candidate = records.candidate(position["id"], "S")
    _cast(db, ballot, election_id=src["id"], position_id=position["id"], candidate_id=candidate["id"])
    assert len(db.rows("votes")) == 1


def test_voter_without_department_sees_src_elections_only_when_enabled(
    db: FakeSupabase, records: Records, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A student with no department is refused a listing unless SRC voting is on."""
    cs = records.department()
    records.election(cs["id"], name="CS")
    src = records.election(None, name="SRC", category="SRC")
    records.position(src["id"])
    voter = records.voter(None, email="nodept@unimak.edu.sl", student_id="S900")
    service = VotingService(db)

    with pytest.raises(InvalidInputError) as exc_info:
        service.open_elections(voter)
    assert exc_info.value.message == "Voter must belong to a department"

    monkeypatch.setattr(settings, "allow_src_voting", True)
    assert [e["name"] for e in service.open_elections(voter)] == ["SRC"]


def test_checks_run_in_order(db: FakeSupabase, records: Records, ballot: dict) -> None:
    """Each failing precondition is reported before later ones are evaluated."""
    other_position = records.position(
        records.election(ballot["department"]["id"], name="Other")["id"]
    )

    with pytest.raises(NotFoundError) as exc_info:
        _cast(db, ballot, voter_id=999, election_id=999)
    assert exc_info.value.message == "Voter not found"

    with pytest.raises(NotFoundError) as exc_info:
        _cast(db, ballot, election_id=999, position_id=999)
    assert exc_info.value.message == "Election not found"

    with pytest.raises(InvalidInputError) as exc_info:
        _cast(db, ballot, position_id=other_position["id"], candidate_id=999)
    assert exc_info.value.message == "Invalid position"

    with pytest.raises(InvalidInputError) as exc_info:
        _cast(db, ballot, candidate_id=999)
    assert exc_info.value.message == "Invalid candidate"


def test_open_elections_marks_voted_positions(
    db: FakeSupabase, records: Records, ballot: dict
) -> None:
    """Listings only include eligible open elections and track progress."""
    records.election(ballot["department"]["id"], name="Draft", status="DRAFT")
    records.election(None, name="SRC", category="SRC")
    secretary = records.position(ballot["election"]["id"], "General Secretary")
    records.candidate(secretary["id"], "C")

    service = VotingService(db)
    listed = service.open_elections(ballot["voter"])
    assert [e["id"] for e in listed] == [ballot["election"]["id"]]
    assert [p["name"] for p in listed[0]["positions"]] == ["President", "General Secretary"]
    assert not listed[0]["has_any_votes"]

    _cast(db, ballot)
    listed = service.open_elections(ballot["voter"])
    flags = {p["name"]: p["has_voted"] for p in listed[0]["positions"]}
    assert flags == {"President": True, "General Secretary": False}
    assert listed[0]["has_any_votes"]
    assert not listed[0]["has_voted"]


def test_position_sort_key_puts_president_first() -> None:
    """President titles lead, the rest sort case-insensitively."""
    names = ["treasurer", "General Secretary", "Vice President", "President"]
    ordered = sorted(({"name": name} for name in names), key=position_sort_key)
    assert [p["name"] for p in ordered] == [
        "President",
        "Vice President",
        "General Secretary",
        "treasurer",
    ]
