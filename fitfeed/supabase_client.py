from typing import Optional

from supabase import AsyncClient, AsyncClientOptions, acreate_client

from .config import Settings, get_settings


class BackendNotConfiguredError(RuntimeError):
    """SUPABASE_URL / SUPABASE_ANON_KEY are missing."""


async def create_backend_client(settings: Optional[Settings] = None) -> AsyncClient:
    """Build a fresh backend client.

    Each connection gets its own client: the auth session lives inside the
    client, so sharing one would share the signed-in user.
    """
    settings = settings or get_settings()
    if not settings.backend_configured:
        raise BackendNotConfiguredError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

    options = AsyncClientOptions(auto_refresh_token=settings.auto_refresh_token)
    return await acreate_client(settings.supabase_url, settings.supabase_anon_key, options=options)
