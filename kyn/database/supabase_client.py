from supabase import create_client, Client
from kyn.config import settings


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def is_unique_violation(exc: Exception, constraint: str = None) -> bool:
    """True if a postgrest error is a Postgres unique violation (optionally on a named constraint)."""
    if getattr(exc, "code", None) != "23505":
        return False
    if constraint is None:
        return True
    text = f"{getattr(exc, 'message', '')} {getattr(exc, 'details', '')}"
    return constraint in text


def is_raised_error(exc: Exception, message: str) -> bool:
    """True if a postgrest error came from a `raise exception '<message>'` in a stored procedure."""
    return getattr(exc, "code", None) == "P0001" and message in (getattr(exc, "message", "") or "")
