"""Voter account, login, and ballot schemas."""

from app.schemas.common import CamelModel


class VoterWrite(CamelModel):
    """Request body for creating or updating a voter."""

    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    student_id: str | None = None
    department_id: int | None = None


class VoterLoginRequest(CamelModel):
    """Voter credentials: email or student ID, password, and voter key."""

    email: str | None = None
    student_id: str | None = None
    password: str | None = None
    voter_key: str | None = None


class ResendOtpRequest(CamelModel):
    """Request body for re-sending a verification code."""

    email: str | None = None


class VerifyOtpRequest(CamelModel):
    """Request body for confirming a verification code."""

    email: str | None = None
    otp: str | None = None


class VoteCreate(CamelModel):
    """Request body for casting a vote."""

    election_id: int | None = None
    position_id: int | None = None
    candidate_id: int | None = None

