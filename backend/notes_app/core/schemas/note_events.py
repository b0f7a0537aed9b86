from __future__ import annotations

from typing import Annotated, Literal, Union
from uuid import UUID  # noqa: TCH003

from pydantic import Field

from notes_app.core.models.base import AppBaseModel
from notes_app.core.models.note import Note  # noqa: TCH001


class NoteInserted(AppBaseModel):
    kind: Literal["inserted"] = "inserted"
    note: Note


class NoteUpdated(AppBaseModel):
    kind: Literal["updated"] = "updated"
    note: Note


class NoteDeleted(AppBaseModel):
    kind: Literal["deleted"] = "deleted"
    note_id: UUID


NoteEvent = Annotated[Union[NoteInserted, NoteUpdated, NoteDeleted], Field(discriminator="kind")]
