from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from notes_app.core.authorization import can_edit, view_permissions
from notes_app.core.errors import (
    NOTE_UNAVAILABLE_MESSAGE,
    AuthorizationError,
    FetchError,
    NoteAppError,
    ValidationError,
)
from notes_app.core.schemas.note import NoteDetail, NoteDraft, NotePatch
from notes_app.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from notes_app.core.models.note import Note
    from notes_app.core.repositories.note_repository import NoteRepository
    from notes_app.core.repositories.profile_repository import ProfileRepository

logger = get_logger(__name__)


class NoteService:
    """Commands on notes with user-scoped access (RLS friendly).

    Every mutation is validated and authorization-checked locally before a
    request is sent, repeating what the store's policies enforce anyway.
    None of these methods touch any locally held note set; callers learn about
    the effect of a write from the change feed.
    """

    def __init__(self, repo: NoteRepository, profiles: ProfileRepository | None = None) -> None:
        self._repo = repo
        self._profiles = profiles

    async def create_note(self, draft: NoteDraft, session_id: UUID | None) -> Note:
        """Validate ``draft`` and insert it owned by ``session_id``."""
        if session_id is None:
            raise AuthorizationError("You must be logged in to save notes")
        normalized = _validated_draft(draft)
        note = await self._repo.insert(normalized, requester_id=session_id)
        logger.info("Note created", extra={"note_id": str(note.id), "user_id": str(session_id)})
        return note

    async def update_note(self, note: Note | None, patch: NotePatch, session_id: UUID | None) -> None:
        """Send ``patch`` for ``note``, which is the caller's copy used for the ownership pre-check."""
        if note is None or not can_edit(note, session_id):
            raise AuthorizationError("You don't have permission to edit this note")
        normalized = _validated_patch(patch)
        await self._repo.update(note.id, normalized, requester_id=session_id)

    async def delete_note(self, note: Note | None, session_id: UUID | None) -> None:
        if note is None or not can_edit(note, session_id):
            raise AuthorizationError("You don't have permission to delete this note")
        await self._repo.delete(note.id, requester_id=session_id)
        logger.info("Note deleted", extra={"note_id": str(note.id), "user_id": str(session_id)})

    async def list_owned(self, session_id: UUID) -> Sequence[Note]:
        """List notes owned by the session, newest first."""
        return await self._repo.fetch_owned(session_id)

    async def load_note(self, note_id: str | UUID, session_id: UUID | None) -> NoteDetail:
        """Load a single note for any viewer.

        Absent, private-to-someone-else and malformed ids all produce the same
        ``FetchError`` so that the existence of a private note never leaks.
        """
        try:
            note_uuid = UUID(str(note_id))
        except ValueError as err:
            raise FetchError(NOTE_UNAVAILABLE_MESSAGE) from err

        try:
            note = await self._repo.fetch_by_id(note_uuid)
        except NoteAppError as err:
            logger.warning("Single note load failed", extra={"note_id": str(note_uuid), "error": err.user_message})
            raise FetchError(NOTE_UNAVAILABLE_MESSAGE) from err

        if note is None:
            raise FetchError(NOTE_UNAVAILABLE_MESSAGE)
        permissions = view_permissions(note, session_id)
        if not permissions.can_view:
            logger.warning("Store returned a note the viewer may not see", extra={"note_id": str(note.id)})
            raise FetchError(NOTE_UNAVAILABLE_MESSAGE)

        return NoteDetail(note=note, author=await self._load_author(note), permissions=permissions)

    async def _load_author(self, note: Note):
        if self._profiles is None:
            return None
        try:
            return await self._profiles.get_profile(note.user_id)
        except NoteAppError as err:
            logger.warning(
                "Author profile unavailable",
                extra={"note_id": str(note.id), "user_id": str(note.user_id), "error": err.user_message},
            )
            return None


def _validated_draft(draft: NoteDraft) -> NoteDraft:
    title = (draft.title or "").strip()
    content = (draft.content or "").strip()
    if not title or not content:
        raise ValidationError()
    return draft.model_copy(update={"title": title, "content": content})


def _validated_patch(patch: NotePatch) -> NotePatch:
    changes = patch.changes()
    for key in ("title", "content"):
        if key in changes:
            value = (changes[key] or "").strip()
            if not value:
                raise ValidationError()
            changes[key] = value
    return NotePatch.model_validate(changes)
