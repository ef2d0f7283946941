"""Voter-facing endpoints: login, open elections, voting, and results.

Mounted on the same ``/api/voters`` prefix as the admin voter router and
registered before it, so these fixed paths win over ``/{voter_id}``.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_current_voter, get_db_client
from app.schemas.voter import ResendOtpRequest, VerifyOtpRequest, VoteCreate, VoterLoginRequest
from app.services.auth_service import VoterAuthService
from app.services.mail_service import Mailer, get_mailer
from app.services.results_service import ResultsService
from app.services.voting_service import VotingService
from app.utils.errors import InvalidInputError
from supabase import Client

router = APIRouter()


@router.post("/login")
def voter_login(
    payload: VoterLoginRequest,
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Check password and voter key, then issue a token or an emailed code."""
    return VoterAuthService(client, mailer).login(
        email=payload.email,
        student_id=payload.student_id,
        password=payload.password,
        voter_key=payload.voter_key,
    )


@router.post("/resend-otp")
def resend_otp(
    payload: ResendOtpRequest,
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Send a fresh verification code."""
    return VoterAuthService(client, mailer).resend_otp(payload.email)


@router.post("/verify-otp")
def verify_otp(
    payload: VerifyOtpRequest,
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Confirm the emailed code and issue a voter token."""
    return VoterAuthService(client, mailer).verify_otp(payload.email, payload.otp)


@router.get("/me")
def get_me(
    voter: dict[str, Any] = Depends(get_current_voter),
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Return the signed-in voter."""
    return {"voter": VoterAuthService(client, mailer).profile(voter)}


@router.get("/elections")
def list_open_elections(
    voter: dict[str, Any] = Depends(get_current_voter),
    client: Client = Depends(get_db_client),
) -> dict:
    """Elections the voter can vote in right now."""
    return {"elections": VotingService(client).open_elections(voter)}


@router.post("/vote")
def cast_vote(
    payload: VoteCreate,
    voter: dict[str, Any] = Depends(get_current_voter),
    client: Client = Depends(get_db_client),
) -> dict:
    """Record one vote for one position."""
    if not payload.election_id or not payload.position_id or not payload.candidate_id:
        raise InvalidInputError("Election ID, Position ID, and Candidate ID are required")

    vote = VotingService(client).cast_vote(
        voter_id=voter["id"],
        election_id=payload.election_id,
        position_id=payload.position_id,
        candidate_id=payload.candidate_id,
    )
    return {"success": True, "message": "Vote submitted successfully", "vote": vote}


@router.get("/results")
def voter_results(
    election_id: int | None = Query(default=None, alias="electionId"),
    voter: dict[str, Any] = Depends(get_current_voter),
    client: Client = Depends(get_db_client),
) -> dict:
    """Results of one ended election, or the list of ended elections."""
    service = ResultsService(client)
    if election_id is None:
        return {"elections": service.voter_ended_elections(voter)}
    return service.voter_results(voter, election_id)
