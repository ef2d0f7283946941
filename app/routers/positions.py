"""Position endpoints (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.dependencies import get_current_admin, get_db_client
from app.schemas.election import PositionWrite
from app.services.position_service import PositionService
from supabase import Client

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.get("")
def list_positions(client: Client = Depends(get_db_client)) -> dict:
    """List positions, newest first."""
    return {"positions": PositionService(client).list_positions()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_position(payload: PositionWrite, client: Client = Depends(get_db_client)) -> dict:
    """Create a position in an election."""
    position = PositionService(client).create(
        name=payload.name,
        election_id=payload.election_id,
        max_choices=payload.max_choices,
    )
    return {"position": position}


@router.get("/{position_id}")
def get_position(position_id: int, client: Client = Depends(get_db_client)) -> dict:
    """Return one position."""
    return {"position": PositionService(client).get(position_id)}


@router.put("/{position_id}")
def update_position(
    position_id: int,
    payload: PositionWrite,
    client: Client = Depends(get_db_client),
) -> dict:
    """Update a position."""
    position = PositionService(client).update(
        position_id,
        name=payload.name,
        election_id=payload.election_id,
        max_choices=payload.max_choices,
    )
    return {"position": position}


@router.delete("/{position_id}")
def delete_position(position_id: int, client: Client = Depends(get_db_client)) -> dict:
    """Delete a position that has no candidates or votes."""
    PositionService(client).delete(position_id)
    return {"success": True}
