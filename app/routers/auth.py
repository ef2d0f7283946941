"""Admin session endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from app.config import settings
from app.dependencies import get_current_admin, get_db_client
from app.schemas.auth import AdminLoginRequest, AdminSessionResponse
from app.services.auth_service import AdminAuthService, admin_summary
from supabase import Client

router = APIRouter()


@router.post("/login", response_model=AdminSessionResponse)
def login(
    payload: AdminLoginRequest,
    response: Response,
    client: Client = Depends(get_db_client),
) -> dict:
    """Verify admin credentials and set the session cookie."""
    user, token = AdminAuthService(client).authenticate(payload.email, payload.password)
    response.set_cookie(
        settings.admin_session_cookie,
        token,
        max_age=settings.admin_session_ttl_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure or settings.is_production,
    )
    return {"user": admin_summary(user)}


@router.get("/session", response_model=AdminSessionResponse)
def get_session(admin: dict[str, Any] = Depends(get_current_admin)) -> dict:
    """Return the signed-in admin."""
    return {"user": admin_summary(admin)}


@router.post("/logout")
def logout(response: Response) -> dict:
    """Clear the admin session cookie."""
    response.delete_cookie(settings.admin_session_cookie)
    return {"success": True}
