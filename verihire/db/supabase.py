"""Supabase client factory.

Provides ``create_supabase()`` which builds a Supabase client from
``settings``.  The client is owned by the repository that uses it.
"""

from supabase import Client, create_client

from verihire.core.config import settings
from verihire.core.errors import ConfigurationError


def create_supabase() -> Client:
    """Return a new Supabase client, failing fast on missing credentials."""
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY are required for the supabase backend")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
