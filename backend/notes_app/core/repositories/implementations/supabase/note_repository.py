from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
from postgrest.exceptions import APIError

from notes_app.config import settings
from notes_app.core.errors import NetworkError, RejectedError
from notes_app.core.models.note import Note, Visibility
from notes_app.core.repositories.note_repository import NoteRepository
from notes_app.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from supabase import Client

    from notes_app.core.schemas.note import NoteDraft, NotePatch


class SupabaseNoteRepository(NoteRepository):
    """Supabase implementation of the NoteRepository.

    Uses Supabase's PostgREST client for CRUD against the ``notes`` table. The
    client carries the caller's JWT, so every query is filtered by the table's
    row-level policies before it reaches us.
    """

    def __init__(self, client: Client, table_name: str | None = None) -> None:
        self._client: Client = client
        self._table = table_name or settings.notes_table

    async def fetch_owned(self, owner_id: UUID) -> Sequence[Note]:
        resp = await self._run(
            lambda: self._client.table(self._table)
            .select("*")
            .eq("user_id", str(owner_id))
            .order("created_at", desc=True)
            .execute(),
            action="fetch_owned",
        )
        return [row_to_note(r) for r in resp.data or []]

    async def fetch_by_id(self, note_id: UUID) -> Note | None:
        resp = await self._run(
            lambda: self._client.table(self._table)
            .select("*")
            .eq("id", str(note_id))
            .limit(1)
            .execute(),
            action="fetch_by_id",
        )
        items = resp.data or []
        if not items:
            return None
        return row_to_note(items[0])

    async def insert(self, draft: NoteDraft, requester_id: UUID) -> Note:
        row = {
            "user_id": str(requester_id),
            "title": draft.title,
            "content": draft.content,
            "is_public": draft.visibility is Visibility.PUBLIC,
            "tags": list(draft.tags),
        }
        resp = await self._run(
            lambda: self._client.table(self._table).insert(row).execute(),
            action="insert",
        )
        data = self._first(resp.data)
        if not data:
            raise RejectedError("Failed to create note. Please try again.")
        return row_to_note(data)

    async def update(self, note_id: UUID, patch: NotePatch, requester_id: UUID) -> None:
        changes = patch_to_row(patch)
        if not changes:
            return
        resp = await self._run(
            lambda: self._client.table(self._table)
            .update(changes)
            .eq("id", str(note_id))
            .eq("user_id", str(requester_id))
            .execute(),
            action="update",
        )
        # RLS filters rows silently; an empty result means nothing we own matched
        if not resp.data:
            raise RejectedError("Failed to update note. You may not have permission.")

    async def delete(self, note_id: UUID, requester_id: UUID) -> None:
        resp = await self._run(
            lambda: self._client.table(self._table)
            .delete()
            .eq("id", str(note_id))
            .eq("user_id", str(requester_id))
            .execute(),
            action="delete",
        )
        if not resp.data:
            raise RejectedError("Failed to delete note. You may not have permission.")

    @staticmethod
    async def _run(func: Callable[[], Any], *, action: str) -> Any:
        try:
            return await asyncio.to_thread(func)
        except APIError as err:
            logger.warning(
                "Notes request rejected",
                extra={"action": action, "code": getattr(err, "code", None), "error_summary": str(err)[:100]},
            )
            raise RejectedError(_REJECTED_MESSAGES.get(action)) from err
        except httpx.HTTPError as err:
            logger.warning("Notes request failed", extra={"action": action, "error_type": type(err).__name__})
            raise NetworkError() from err

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}


_REJECTED_MESSAGES = {
    "fetch_owned": "Failed to load notes. Please try again.",
    "fetch_by_id": "Failed to load note.",
    "insert": "Failed to create note. Please try again.",
    "update": "Failed to update note. You may not have permission.",
    "delete": "Failed to delete note. You may not have permission.",
}


def row_to_note(row: dict[str, Any]) -> Note:
    """Build a Note from a table row or realtime record, ignoring unknown columns."""
    normalized = {k: v for k, v in dict(row).items() if k in Note.model_fields}
    if normalized.get("tags") is None:
        normalized["tags"] = []
    if normalized.get("is_public") is None:
        normalized["is_public"] = False
    return Note.model_validate(normalized)


def patch_to_row(patch: NotePatch) -> dict[str, Any]:
    """Translate a patch into column changes; timestamps are left to the trigger."""
    changes: dict[str, Any] = {}
    for key, value in patch.changes().items():
        if key == "visibility":
            if value is not None:
                changes["is_public"] = Visibility(value) is Visibility.PUBLIC
        elif value is not None:
            changes[key] = value
    return changes
