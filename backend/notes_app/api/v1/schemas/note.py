from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from enum import Enum
from typing import Annotated, Literal, Union
from uuid import UUID  # noqa: TCH003

from pydantic import Field

from notes_app.core.authorization import ViewPermissions  # noqa: TCH001
from notes_app.core.models.base import AppBaseModel
from notes_app.core.models.note import Visibility  # noqa: TCH001
from notes_app.core.models.profile import Profile  # noqa: TCH001
from notes_app.core.schemas.note import NoteDraft, NotePatch


class NoteCreate(NoteDraft):
    """Body of ``POST /notes``; emptiness is reported as 400 by the service."""


class NoteUpdate(NotePatch):
    """Body of ``PATCH /notes/{id}``."""


class NoteView(str, Enum):
    RAW = "raw"
    RENDERED = "rendered"


class NoteRead(AppBaseModel):
    id: UUID
    user_id: UUID
    title: str
    content: str
    is_public: bool
    visibility: Visibility
    tags: list[str]
    created_at: datetime
    updated_at: datetime | None


class NoteAuthor(AppBaseModel):
    full_name: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_profile(cls, profile: Profile | None) -> NoteAuthor | None:
        if profile is None:
            return None
        return cls(full_name=profile.full_name, avatar_url=profile.avatar_url)


class NoteDetailRead(NoteRead):
    author: NoteAuthor | None = None
    permissions: ViewPermissions
    content_html: str | None = None


class LiveNote(NoteRead):
    permissions: ViewPermissions


# WebSocket messages


class SnapshotMessage(AppBaseModel):
    type: Literal["snapshot"] = "snapshot"
    notes: list[LiveNote]
    subscription_active: bool
    errored: bool
    error: str | None = None


class ResultMessage(AppBaseModel):
    type: Literal["result"] = "result"
    request_id: str | None = None
    ok: bool
    message: str | None = None


class CreateIntent(NoteDraft):
    action: Literal["create"]
    request_id: str | None = None


class UpdateIntent(AppBaseModel):
    action: Literal["update"]
    request_id: str | None = None
    note_id: UUID
    patch: NotePatch


class DeleteIntent(AppBaseModel):
    action: Literal["delete"]
    request_id: str | None = None
    note_id: UUID


class ReloadIntent(AppBaseModel):
    action: Literal["reload"]
    request_id: str | None = None


LiveIntent = Annotated[
    Union[CreateIntent, UpdateIntent, DeleteIntent, ReloadIntent],
    Field(discriminator="action"),
]
