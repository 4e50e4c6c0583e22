"""Supabase client singleton.

Provides ``get_supabase()`` which returns a lazily-initialized, process-wide
Supabase client using credentials from ``settings``, plus a helper that
recognises Postgres unique-constraint failures raised through PostgREST.
"""

from supabase import Client, create_client

from app.core.config import settings

_client: Client | None = None

UNIQUE_VIOLATION = "23505"


def get_supabase() -> Client:
    """Return the singleton Supabase client, creating it on first call."""
    global _client
    if _client is None:
        _client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _client


def is_unique_violation(exc: Exception) -> bool:
    """True when ``exc`` is a PostgREST error for SQLSTATE 23505."""
    code = getattr(exc, "code", None)
    if code == UNIQUE_VIOLATION:
        return True
    return UNIQUE_VIOLATION in str(exc) and "duplicate key" in str(exc)
