"""FastAPI dependency injection helpers."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, Header, Request

from app.config import settings
from app.services.common import SupabaseService
from app.utils.errors import NotFoundError, UnauthorizedError
from app.utils.security import (
    ROLE_ADMIN,
    ROLE_STUDENT,
    decode_session_claims,
    decode_session_token,
    issued_before,
)
from app.utils.supabase_client import get_service_client
from app.utils.time import parse_timestamp
from supabase import Client


def get_db_client() -> Client:
    """Return the privileged Supabase client used by backend services."""
    return get_service_client()


def get_current_admin(
    request: Request,
    client: Client = Depends(get_db_client),
) -> dict[str, Any]:
    """Resolve the admin behind the session cookie.

    Raises:
        UnauthorizedError: 401 if the cookie is missing or invalid, or the
            account no longer exists or is not an admin.
    """
    token = request.cookies.get(settings.admin_session_cookie)
    if not token:
        raise UnauthorizedError()

    user_id = decode_session_token(token, expected_role=ROLE_ADMIN)
    user = SupabaseService(client).find_one("users", {"id": user_id})
    if not user or user.get("role") != ROLE_ADMIN:
        raise UnauthorizedError()
    return user


def get_current_voter(
    authorization: str = Header(None),
    client: Client = Depends(get_db_client),
) -> dict[str, Any]:
    """Resolve the voter behind a signed bearer token.

    Tokens signed before the voter's last credential reset are refused.

    Raises:
        UnauthorizedError: 401 if the header is missing, the token is invalid,
            or it predates a credential reset.
        NotFoundError: 404 if the voter was removed after the token was issued.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Voter session is required")

    token = authorization.split(" ", 1)[1].strip()
    claims = decode_session_claims(token, expected_role=ROLE_STUDENT)
    voter = SupabaseService(client).find_one("users", {"id": claims["sub"]})
    if not voter or voter.get("role") != ROLE_STUDENT:
        raise NotFoundError("Voter")
    if issued_before(claims, parse_timestamp(voter.get("credentials_reset_at"))):
        raise UnauthorizedError("Session revoked, please sign in again")
    return voter
