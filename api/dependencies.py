"""
Shared FastAPI dependencies.
"""

from supabase import Client  # type: ignore[import-not-found]

from repositories.client import get_supabase


def get_db() -> Client:
    """Supabase client for request handlers. Overridden in tests."""
    return get_supabase()
