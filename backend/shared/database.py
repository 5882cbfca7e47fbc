"""
Client factory for Supabase.

Provides a service-role client (profile table access and the admin
claims side-channel) and anon-key clients (end-user auth sessions).
"""

from typing import Optional
from supabase import create_client, Client

from .config import get_settings

# Module-level client cache
_service_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get Supabase client with service role (bypasses RLS).

    Use this for backend operations that need full table access and for
    admin auth calls such as updating a user's app_metadata.

    Returns:
        Supabase client configured with service role key
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
            )
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def get_supabase_auth_client() -> Client:
    """
    Create a fresh anon-key client for one end-user auth session.

    Not cached: each client holds the session of the user it signed in,
    so sharing one across requests would leak sessions between users.
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise RuntimeError(
            "Supabase configuration missing. "
            "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
        )
    return create_client(settings.supabase_url, settings.supabase_anon_key)


def get_supabase_user_client(access_token: str, refresh_token: str = "") -> Client:
    """
    Get Supabase client authenticated as a specific user.

    Args:
        access_token: JWT access token from Supabase Auth
        refresh_token: Refresh token, if the caller has one

    Returns:
        Supabase client carrying the user's session
    """
    client = get_supabase_auth_client()
    client.auth.set_session(access_token, refresh_token)
    return client


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _service_client
    _service_client = None
