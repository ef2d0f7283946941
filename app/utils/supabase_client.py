"""Service-role Supabase client shared by requests, jobs, and scripts."""

from functools import lru_cache

import httpx
from supabase.lib.client_options import SyncClientOptions

from app.config import settings
from supabase import Client, create_client


def _http_client(timeout_seconds: int) -> httpx.Client:
    """Pooled HTTP transport for PostgREST calls."""
    max_connections = max(10, settings.supabase_http_max_connections)
    keepalive = max(5, min(max_connections, settings.supabase_http_max_keepalive_connections))
    return httpx.Client(
        timeout=httpx.Timeout(timeout_seconds),
        limits=httpx.Limits(max_connections=max_connections, max_keepalive_connections=keepalive),
    )


def _client_options() -> SyncClientOptions:
    # The API never uses Supabase Auth sessions; admin and voter identity are
    # carried by our own signed tokens.
    timeout_seconds = max(1, settings.supabase_postgrest_timeout_seconds)
    return SyncClientOptions(
        auto_refresh_token=False,
        persist_session=False,
        postgrest_client_timeout=timeout_seconds,
        httpx_client=_http_client(timeout_seconds),
    )


@lru_cache(maxsize=1)
def get_service_client() -> Client:
    """Return the process-wide service-role client (bypasses RLS).

    Tables are only reachable through this API, which enforces its own admin
    and voter checks.
    """
    return create_client(
        settings.supabase_url,
        settings.supabase_service_key,
        options=_client_options(),
    )
