"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "AdminAuthService": "app.services.auth_service",
    "CandidateService": "app.services.candidate_service",
    "DashboardService": "app.services.dashboard_service",
    "DepartmentService": "app.services.department_service",
    "ElectionService": "app.services.election_service",
    "Mailer": "app.services.mail_service",
    "PositionService": "app.services.position_service",
    "ResultsService": "app.services.results_service",
    "SupabaseService": "app.services.common",
    "VoterAuthService": "app.services.auth_service",
    "VoterService": "app.services.voter_service",
    "VotingService": "app.services.voting_service",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
