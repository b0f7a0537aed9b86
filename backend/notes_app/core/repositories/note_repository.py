from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from notes_app.core.models.note import Note
    from notes_app.core.schemas.note import NoteDraft, NotePatch


class NoteRepository(ABC):
    """Abstract repository interface for notes.

    Access control is enforced by the store's row-level policies; mutating
    calls still carry the requester so implementations scope them by owner.
    Implementations raise ``RejectedError`` when the store refuses a request
    and ``NetworkError`` on transport failures.
    """

    @abstractmethod
    async def fetch_owned(self, owner_id: UUID) -> Sequence[Note]:  # pragma: no cover - interface only
        """Return all notes owned by ``owner_id``, newest ``created_at`` first."""

    @abstractmethod
    async def fetch_by_id(self, note_id: UUID) -> Note | None:  # pragma: no cover
        """Fetch a single note, or None when it is absent or not visible to the caller.

        The two cases are indistinguishable on purpose.
        """

    @abstractmethod
    async def insert(self, draft: NoteDraft, requester_id: UUID) -> Note:  # pragma: no cover
        """Insert a note owned by ``requester_id``; the store assigns id and timestamps."""

    @abstractmethod
    async def update(self, note_id: UUID, patch: NotePatch, requester_id: UUID) -> None:  # pragma: no cover
        """Apply ``patch`` to the note if it is owned by ``requester_id``."""

    @abstractmethod
    async def delete(self, note_id: UUID, requester_id: UUID) -> None:  # pragma: no cover
        """Delete the note if it is owned by ``requester_id``."""
