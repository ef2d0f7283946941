"""Department endpoints (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.dependencies import get_current_admin, get_db_client
from app.schemas.department import DepartmentWrite
from app.services.department_service import DepartmentService
from supabase import Client

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.get("")
def list_departments(client: Client = Depends(get_db_client)) -> dict:
    """List departments with student and election counts."""
    return {"departments": DepartmentService(client).list_departments()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_department(payload: DepartmentWrite, client: Client = Depends(get_db_client)) -> dict:
    """Create a department."""
    return {"department": DepartmentService(client).create(payload.name)}


@router.get("/{department_id}")
def get_department(department_id: int, client: Client = Depends(get_db_client)) -> dict:
    """Return one department."""
    return {"department": DepartmentService(client).get(department_id)}


@router.put("/{department_id}")
def update_department(
    department_id: int,
    payload: DepartmentWrite,
    client: Client = Depends(get_db_client),
) -> dict:
    """Rename a department."""
    return {"department": DepartmentService(client).update(department_id, payload.name)}


@router.delete("/{department_id}")
def delete_department(department_id: int, client: Client = Depends(get_db_client)) -> dict:
    """Delete a department that has no students or elections."""
    DepartmentService(client).delete(department_id)
    return {"success": True}
