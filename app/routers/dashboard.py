"""Admin dashboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_current_admin, get_db_client
from app.schemas.dashboard import DashboardStats
from app.services.dashboard_service import DashboardService
from supabase import Client

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.get("/stats", response_model=DashboardStats)
def get_stats(client: Client = Depends(get_db_client)) -> dict:
    """Election, voter, and vote totals."""
    return DashboardService(client).stats()


@router.get("/system")
def get_system_info(client: Client = Depends(get_db_client)) -> dict:
    """Version, configuration flags, and record totals."""
    return {"system": DashboardService(client).system_info()}
