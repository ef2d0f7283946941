"""Election, position, and candidate schemas."""

from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel


class ElectionWrite(CamelModel):
    """Request body for creating or updating an election."""

    name: str | None = None
    category: str | None = None
    department_id: int | None = None
    status: str | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None


class PositionWrite(CamelModel):
    """Request body for creating or updating a position."""

    name: str | None = None
    election_id: int | None = None
    max_choices: int | None = None


class CandidateWrite(CamelModel):
    """Request body for creating or updating a candidate."""

    display_name: str | None = None
    position_id: int | None = None
    user_id: int | None = None
    manifesto: str | None = Field(default=None, max_length=5000)
    photo_url: str | None = Field(default=None, max_length=2048)
