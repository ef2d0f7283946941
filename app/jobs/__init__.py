"""Background job modules for periodic voting housekeeping."""

from app.jobs.election_status_sweep import election_status_sweep
from app.jobs.otp_cleanup import otp_cleanup

__all__ = [
    "election_status_sweep",
    "otp_cleanup",
]
