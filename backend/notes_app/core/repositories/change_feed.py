from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from uuid import UUID

    from notes_app.core.schemas.note_events import NoteEvent

EventHandler = Callable[["NoteEvent"], None]


class FeedSubscription:
    """Handle for an open change-feed subscription."""

    def __init__(self, owner_id: UUID, handle: Any = None) -> None:
        self.owner_id = owner_id
        self.handle = handle
        self.closed = False


class ChangeFeed(ABC):
    """Push stream of insert/update/delete events on the notes table.

    ``on_event`` is called from the event loop for each change of a row owned
    by ``owner_id``. It must not block.
    """

    @abstractmethod
    async def subscribe(self, owner_id: UUID, on_event: EventHandler) -> FeedSubscription:  # pragma: no cover
        """Open a subscription filtered on the note owner."""

    @abstractmethod
    async def unsubscribe(self, subscription: FeedSubscription) -> None:  # pragma: no cover
        """Close a subscription. Closing twice is a no-op."""
