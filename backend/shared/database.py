"""
Database client factory for Supabase.

The same async client serves both halves of the platform: Supabase Auth
(identity) and PostgREST/Realtime (document collections). It is created with
the anon key, so Row Level Security applies to every document operation.
"""

from typing import Optional
from supabase import acreate_client, AsyncClient
from supabase.lib.client_options import AsyncClientOptions

from .config import get_settings

# Module-level client cache
_client: Optional[AsyncClient] = None


async def get_supabase_client() -> AsyncClient:
    """
    Get the shared Supabase client for this process.

    The client uses the PKCE flow so that OAuth sign-in can be completed by
    exchanging an authorization code for a session.

    Returns:
        Async Supabase client configured with the anon key
    """
    global _client

    if _client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set TRADEPOST_SUPABASE_URL and TRADEPOST_SUPABASE_ANON_KEY environment variables."
            )
        _client = await acreate_client(
            settings.supabase_url,
            settings.supabase_anon_key,
            options=AsyncClientOptions(flow_type="pkce"),
        )

    return _client


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _client
    _client = None
