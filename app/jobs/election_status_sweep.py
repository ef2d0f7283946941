"""Close elections whose voting window has passed."""

from __future__ import annotations

import logging

from app.services.election_service import ElectionService
from app.utils.supabase_client import get_service_client

logger = logging.getLogger(__name__)


async def election_status_sweep() -> None:
    """Move RUNNING elections past their end time to ENDED."""
    client = get_service_client()
    closed = ElectionService(client).close_expired()
    if closed:
        logger.info("election_status_sweep ended elections %s", closed)
