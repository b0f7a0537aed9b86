from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from pydantic import Field, field_validator

from notes_app.core.authorization import ViewPermissions  # noqa: TCH001
from notes_app.core.models.base import AppBaseModel
from notes_app.core.models.note import Note, Visibility  # noqa: TCH001
from notes_app.core.models.profile import Profile  # noqa: TCH001
from notes_app.core.tags import normalize_tags


class NoteDraft(AppBaseModel):
    """Fields supplied by the author for a new note.

    Emptiness of ``title``/``content`` is deliberately not rejected here: the
    note service raises ``ValidationError`` for it before any request is made.
    """

    title: str = ""
    content: str = ""
    visibility: Visibility = Visibility.PRIVATE
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str]:
        return normalize_tags(v)


class NotePatch(AppBaseModel):
    """Partial update; only explicitly set fields are sent to the store."""

    title: str | None = None
    content: str | None = None
    visibility: Visibility | None = None
    tags: list[str] | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return normalize_tags(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class NoteDetail(AppBaseModel):
    """Result of loading a single note for a given viewer."""

    note: Note
    author: Profile | None = None
    permissions: ViewPermissions


class NoteSetSnapshot(AppBaseModel):
    """Immutable view of the live note set handed to observers."""

    session_id: UUID | None = None
    notes: tuple[Note, ...] = ()
    subscription_active: bool = False
    errored: bool = False
    error: str | None = None


class OperationResult(AppBaseModel):
    ok: bool
    message: str | None = None
