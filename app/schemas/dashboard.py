"""Admin dashboard schemas."""

from pydantic import BaseModel


class DashboardStats(BaseModel):
    """Admin overview counters."""

    running_elections: int
    draft_elections: int
    total_elections: int
    total_voters: int
    total_votes: int
