from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from notes_app.config import settings
from notes_app.core.errors import NetworkError
from notes_app.core.repositories.change_feed import ChangeFeed, FeedSubscription
from notes_app.core.repositories.implementations.supabase.note_repository import row_to_note
from notes_app.core.schemas.note_events import NoteDeleted, NoteInserted, NoteUpdated
from notes_app.db.base import create_realtime_supabase_client
from notes_app.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from notes_app.core.repositories.change_feed import EventHandler
    from notes_app.core.schemas.note_events import NoteEvent


class SupabaseChangeFeed(ChangeFeed):
    """Supabase Realtime ``postgres_changes`` feed on the notes table.

    Each subscription owns its own realtime connection authorized with the
    user's JWT; unsubscribing removes the channel and closes it.
    """

    def __init__(self, bearer_token: str, table_name: str | None = None) -> None:
        self._token = bearer_token
        self._table = table_name or settings.notes_table

    async def subscribe(self, owner_id: UUID, on_event: EventHandler) -> FeedSubscription:
        def _callback(payload: dict[str, Any]) -> None:
            event = payload_to_event(payload)
            if event is None:
                logger.warning("Ignoring unrecognized change payload", extra={"owner_id": str(owner_id)})
                return
            on_event(event)

        client = None
        try:
            client = await create_realtime_supabase_client(self._token)
            channel = client.channel(f"{settings.realtime_channel}:{owner_id}")
            for event_type in ("INSERT", "UPDATE"):
                channel.on_postgres_changes(
                    event_type,
                    schema=settings.realtime_schema,
                    table=self._table,
                    filter=f"user_id=eq.{owner_id}",
                    callback=_callback,
                )
            # Realtime cannot filter DELETE and only sends the primary key, so
            # every delete on the table arrives here; unknown ids are no-ops.
            channel.on_postgres_changes(
                "DELETE",
                schema=settings.realtime_schema,
                table=self._table,
                callback=_callback,
            )
            await channel.subscribe()
        except Exception as err:
            logger.warning(
                "Change feed subscription failed",
                extra={"owner_id": str(owner_id), "error_type": type(err).__name__},
            )
            if client is not None:
                await _close_client(client, owner_id)
            raise NetworkError("Could not connect to live updates. Please try again.") from err

        logger.info("Change feed subscribed", extra={"owner_id": str(owner_id)})
        return FeedSubscription(owner_id, handle=(client, channel))

    async def unsubscribe(self, subscription: FeedSubscription) -> None:
        if subscription.closed:
            return
        subscription.closed = True
        client, channel = subscription.handle
        await client.remove_channel(channel)
        logger.info("Change feed unsubscribed", extra={"owner_id": str(subscription.owner_id)})


async def _close_client(client: Any, owner_id: UUID) -> None:
    try:
        await client.remove_all_channels()
    except Exception as err:
        logger.warning(
            "Could not close realtime connection after failed subscribe",
            extra={"owner_id": str(owner_id), "error_type": type(err).__name__},
        )


def payload_to_event(payload: dict[str, Any]) -> NoteEvent | None:
    """Translate a realtime postgres_changes payload into a typed note event.

    Accepts both the wrapped server shape (``data.type``/``record``/``old_record``)
    and the flattened client shape (``eventType``/``new``/``old``).
    """
    data = payload.get("data", payload)
    kind = str(data.get("type") or data.get("eventType") or "").upper()
    new = data.get("record") or data.get("new") or {}
    old = data.get("old_record") or data.get("old") or {}

    try:
        if kind == "INSERT":
            return NoteInserted(note=row_to_note(new))
        if kind == "UPDATE":
            return NoteUpdated(note=row_to_note(new))
        if kind == "DELETE" and old.get("id"):
            return NoteDeleted(note_id=UUID(str(old["id"])))
    except (PydanticValidationError, ValueError) as err:
        logger.warning("Malformed change payload", extra={"kind": kind, "error_summary": str(err)[:100]})
    return None
