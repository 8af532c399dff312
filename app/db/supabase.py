"""Supabase client singleton.

``get_supabase()`` returns the process-wide client built from ``settings``
on first use. Services receive it through their constructors so tests can
hand in a mock instead.
"""

from supabase import Client, create_client

from app.core.config import settings

_client: Client | None = None


def get_supabase() -> Client:
    """Return the singleton Supabase client, creating it on first call."""
    global _client
    if _client is None:
        _client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _client


def first_row(result: object) -> dict | None:
    """Return the first row of a PostgREST response, or None when empty."""
    data = getattr(result, "data", None)
    if isinstance(data, list):
        return data[0] if data else None
    if isinstance(data, dict):
        return data
    return None
