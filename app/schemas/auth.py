"""Admin authentication schemas."""

from pydantic import BaseModel

from app.schemas.common import CamelModel


class AdminLoginRequest(CamelModel):
    """Admin email and password."""

    email: str | None = None
    password: str | None = None


class AdminSession(BaseModel):
    """Signed-in admin."""

    id: int
    email: str
    name: str
    role: str


class AdminSessionResponse(BaseModel):
    """Body returned by login and session lookups."""

    user: AdminSession
