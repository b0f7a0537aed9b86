from __future__ import annotations

from supabase import AsyncClient, Client, acreate_client, create_client
from supabase.lib.client_options import AsyncClientOptions, ClientOptions

from notes_app.config import settings
from notes_app.utils.logging import get_logger

logger = get_logger(__name__)


def _anon_key() -> str:
    anon_key = settings.supabase_anon_key
    if not anon_key:
        raise RuntimeError("supabase_anon_key is required for request client")
    return anon_key


def create_request_supabase_client(bearer_token: str | None = None) -> Client:
    """Create a request-scoped Supabase client using the anon key.

    If a JWT is provided, set it as the PostgREST bearer so that RLS policies
    are enforced for all table operations in this request. Without one the
    client acts as the anonymous role and only sees public notes.
    """
    logger.debug("Creating request-scoped Supabase client")
    client = create_client(
        settings.supabase_url,
        _anon_key(),
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )
    if bearer_token:
        client.postgrest.auth(bearer_token)
    return client


async def create_realtime_supabase_client(bearer_token: str) -> AsyncClient:
    """Create an async client whose realtime socket is authorized as the user.

    Realtime applies the same RLS policies to postgres_changes, so the JWT
    must be set before any channel is joined.
    """
    logger.debug("Creating realtime Supabase client")
    client = await acreate_client(
        settings.supabase_url,
        _anon_key(),
        options=AsyncClientOptions(auto_refresh_token=False, persist_session=False),
    )
    await client.realtime.set_auth(bearer_token)
    return client
