"""Voter account endpoints (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from app.dependencies import get_current_admin, get_db_client
from app.schemas.voter import VoterWrite
from app.services.mail_service import Mailer, get_mailer
from app.services.voter_service import VoterService, export_filename
from supabase import Client

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.get("")
def list_voters(
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """List voters, newest first."""
    return {"voters": VoterService(client, mailer).list_voters()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_voter(
    payload: VoterWrite,
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Create a voter and email their generated credentials."""
    return VoterService(client, mailer).create(
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        student_id=payload.student_id,
        department_id=payload.department_id,
    )


@router.get("/export")
def export_voters(
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> Response:
    """Download every voter as CSV."""
    content = VoterService(client, mailer).export_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/{voter_id}")
def get_voter(
    voter_id: int,
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Return one voter."""
    return {"voter": VoterService(client, mailer).get(voter_id)}


@router.put("/{voter_id}")
def update_voter(
    voter_id: int,
    payload: VoterWrite,
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Update a voter's profile."""
    voter = VoterService(client, mailer).update(
        voter_id,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        student_id=payload.student_id,
        department_id=payload.department_id,
    )
    return {"voter": voter}


@router.delete("/{voter_id}")
def delete_voter(
    voter_id: int,
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Delete a voter with no votes or candidacies."""
    VoterService(client, mailer).delete(voter_id)
    return {"success": True}


@router.post("/{voter_id}/credentials")
def reset_voter_credentials(
    voter_id: int,
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Regenerate a voter's password and key and email them again."""
    return VoterService(client, mailer).reset_credentials(voter_id)
