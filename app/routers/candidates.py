"""Candidate endpoints (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.dependencies import get_current_admin, get_db_client
from app.schemas.election import CandidateWrite
from app.services.candidate_service import CandidateService
from supabase import Client

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.get("")
def list_candidates(client: Client = Depends(get_db_client)) -> dict:
    """List candidates, newest first."""
    return {"candidates": CandidateService(client).list_candidates()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_candidate(payload: CandidateWrite, client: Client = Depends(get_db_client)) -> dict:
    """Register a candidate for a position."""
    candidate = CandidateService(client).create(
        display_name=payload.display_name,
        position_id=payload.position_id,
        user_id=payload.user_id,
        manifesto=payload.manifesto,
        photo_url=payload.photo_url,
    )
    return {"candidate": candidate}


@router.get("/{candidate_id}")
def get_candidate(candidate_id: int, client: Client = Depends(get_db_client)) -> dict:
    """Return one candidate."""
    return {"candidate": CandidateService(client).get(candidate_id)}


@router.put("/{candidate_id}")
def update_candidate(
    candidate_id: int,
    payload: CandidateWrite,
    client: Client = Depends(get_db_client),
) -> dict:
    """Update a candidate."""
    candidate = CandidateService(client).update(
        candidate_id,
        display_name=payload.display_name,
        position_id=payload.position_id,
        user_id=payload.user_id,
        manifesto=payload.manifesto,
        photo_url=payload.photo_url,
    )
    return {"candidate": candidate}


@router.delete("/{candidate_id}")
def delete_candidate(candidate_id: int, client: Client = Depends(get_db_client)) -> dict:
    """Delete a candidate with no votes."""
    CandidateService(client).delete(candidate_id)
    return {"success": True}
