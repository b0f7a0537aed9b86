from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
from postgrest.exceptions import APIError

from notes_app.config import settings
from notes_app.core.errors import FetchError, NetworkError
from notes_app.core.models.profile import Profile
from notes_app.core.repositories.profile_repository import ProfileRepository

if TYPE_CHECKING:
    from uuid import UUID

    from supabase import Client


class SupabaseProfileRepository(ProfileRepository):
    """Reads the ``profiles`` table that the signup trigger fills."""

    def __init__(self, client: Client, table_name: str | None = None) -> None:
        self._client: Client = client
        self._table = table_name or settings.profiles_table

    async def get_profile(self, user_id: UUID) -> Profile | None:
        try:
            resp = await asyncio.to_thread(
                lambda: self._client.table(self._table)
                .select("id, full_name, avatar_url")
                .eq("id", str(user_id))
                .limit(1)
                .execute()
            )
        except APIError as err:
            raise FetchError("Failed to load author profile") from err
        except httpx.HTTPError as err:
            raise NetworkError() from err
        items = resp.data or []
        if not items:
            return None
        return Profile.model_validate(items[0])
