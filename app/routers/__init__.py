"""API router package."""

from app.routers import (
    auth,
    ballot,
    candidates,
    dashboard,
    departments,
    elections,
    mail,
    positions,
    voters,
)

__all__ = [
    "auth",
    "ballot",
    "candidates",
    "dashboard",
    "departments",
    "elections",
    "mail",
    "positions",
    "voters",
]
