"""Election endpoints (admin only)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from app.dependencies import get_current_admin, get_db_client
from app.schemas.election import ElectionWrite
from app.services.election_service import ElectionService
from app.services.results_service import ResultsService
from supabase import Client

router = APIRouter()


@router.get("")
def list_elections(
    _: dict[str, Any] = Depends(get_current_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """List elections, newest first."""
    return {"elections": ElectionService(client).list_elections()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_election(
    payload: ElectionWrite,
    admin: dict[str, Any] = Depends(get_current_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Create a new election owned by the signed-in admin."""
    election = ElectionService(client).create(
        admin_id=admin["id"],
        name=payload.name,
        category=payload.category,
        department_id=payload.department_id,
        status=payload.status,
        start_at=payload.start_at,
        end_at=payload.end_at,
    )
    return {"election": election}


@router.get("/{election_id}")
def get_election(
    election_id: int,
    _: dict[str, Any] = Depends(get_current_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return one election."""
    return {"election": ElectionService(client).get(election_id)}


@router.put("/{election_id}")
def update_election(
    election_id: int,
    payload: ElectionWrite,
    _: dict[str, Any] = Depends(get_current_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Update an election's details, status, and schedule."""
    election = ElectionService(client).update(
        election_id,
        name=payload.name,
        category=payload.category,
        department_id=payload.department_id,
        status=payload.status,
        start_at=payload.start_at,
        end_at=payload.end_at,
    )
    return {"election": election}


@router.delete("/{election_id}")
def delete_election(
    election_id: int,
    _: dict[str, Any] = Depends(get_current_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Delete an election that has no positions or votes."""
    ElectionService(client).delete(election_id)
    return {"success": True}


@router.get("/{election_id}/positions")
def list_election_positions(
    election_id: int,
    _: dict[str, Any] = Depends(get_current_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Positions of an election with live vote counts."""
    return {"positions": ElectionService(client).positions_with_counts(election_id)}


@router.get("/{election_id}/results")
def get_election_results(
    election_id: int,
    _: dict[str, Any] = Depends(get_current_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Full standings for an election, whatever its status."""
    return ResultsService(client).election_results(election_id)
