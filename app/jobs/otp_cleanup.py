"""Purge used and expired login codes."""

from __future__ import annotations

import logging

from app.services.auth_service import purge_stale_otps
from app.utils.supabase_client import get_service_client

logger = logging.getLogger(__name__)


async def otp_cleanup() -> None:
    """Delete consumed or expired voter OTP rows."""
    client = get_service_client()
    removed = purge_stale_otps(client)
    logger.info("otp_cleanup completed, removed %s codes", removed)
