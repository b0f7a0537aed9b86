"""Permission flags derived from note ownership and the current session.

These are recomputed on every evaluation and never stored on the note, so a
sign-out or account switch can not leave a stale ``can_edit`` behind.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from notes_app.core.models.base import AppBaseModel

if TYPE_CHECKING:
    from uuid import UUID

    from notes_app.core.models.note import Note


class ViewPermissions(AppBaseModel):
    is_author: bool
    can_view: bool
    can_edit: bool


def is_author(note: Note, session_id: UUID | None) -> bool:
    return session_id is not None and note.user_id == session_id


def can_edit(note: Note, session_id: UUID | None) -> bool:
    return is_author(note, session_id)


def can_view(note: Note, session_id: UUID | None) -> bool:
    return note.is_public or is_author(note, session_id)


def view_permissions(note: Note, session_id: UUID | None) -> ViewPermissions:
    author = is_author(note, session_id)
    return ViewPermissions(
        is_author=author,
        can_view=note.is_public or author,
        can_edit=author,
    )
