from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import TypeAdapter
from supabase import create_client, Client
from app.config import settings


class SupabaseClient:
    """Process-wide Supabase clients. Tables are used as document collections:
    nested sub-documents (followers, stories, comments, likes) are jsonb columns."""

    _client: Client = None
    _storage_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_storage_client(cls) -> Client:
        """Client for Supabase Storage; prefers the service_role key so uploads bypass RLS."""
        if cls._storage_client is None and settings.supabase_service_role_key:
            cls._storage_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._storage_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._storage_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def first_row(result) -> Optional[Dict[str, Any]]:
    """First row of a query result, or None."""
    if result is None or not result.data:
        return None
    return result.data[0]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


_datetime_adapter = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> datetime:
    """Parse a timestamptz value as returned by PostgREST (any fractional precision, Z or offset)"""
    if isinstance(value, datetime):
        return value
    return _datetime_adapter.validate_python(value)


def is_invalid_id_error(exc: Exception) -> bool:
    """True for the error Postgres raises when a malformed uuid is used as a filter"""
    return "invalid input syntax for type uuid" in str(exc).lower()
