from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Callable

from notes_app.core.authorization import view_permissions
from notes_app.core.errors import AuthorizationError, FetchError, NoteAppError
from notes_app.core.models.note import Visibility
from notes_app.core.schemas.note import NoteDraft, NoteSetSnapshot, OperationResult
from notes_app.core.schemas.note_events import NoteDeleted, NoteInserted, NoteUpdated
from notes_app.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from notes_app.core.authorization import ViewPermissions
    from notes_app.core.models.note import Note
    from notes_app.core.repositories.change_feed import ChangeFeed, FeedSubscription
    from notes_app.core.schemas.note import NotePatch
    from notes_app.core.schemas.note_events import NoteEvent
    from notes_app.core.services.note_service import NoteService

logger = get_logger(__name__)

SnapshotListener = Callable[[NoteSetSnapshot], None]


class NoteSynchronizer:
    """Live, ordered set of the session's own notes.

    The set is filled by one scoped fetch and then kept current only by
    change-feed events; the synchronizer never applies its own writes
    locally. Feed callbacks drop events into a mailbox that a single consumer
    task drains, so reconciliation runs one event at a time. Every
    ``initialize``/``teardown`` starts a new epoch, and anything tagged with an
    older epoch (feed events, fetch results, request outcomes) is discarded.

    Methods prefixed ``request_`` raise ``NoteAppError`` subclasses; the
    ``create_note``/``update_note``/``delete_note`` wrappers turn them into an
    ``OperationResult`` for the presentation layer.
    """

    def __init__(self, service: NoteService, feed: ChangeFeed) -> None:
        self._service = service
        self._feed = feed
        self._notes: list[Note] = []
        self._session_id: UUID | None = None
        self._epoch = 0
        self._subscription: FeedSubscription | None = None
        self._mailbox: asyncio.Queue[tuple[int, NoteEvent]] = asyncio.Queue()
        self._consumer: asyncio.Task | None = None
        self._listeners: list[SnapshotListener] = []
        self.errored = False
        self.last_error: str | None = None

    @property
    def session_id(self) -> UUID | None:
        return self._session_id

    @property
    def subscription_active(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    @property
    def notes(self) -> tuple[Note, ...]:
        return tuple(self._notes)

    def snapshot(self) -> NoteSetSnapshot:
        return NoteSetSnapshot(
            session_id=self._session_id,
            notes=tuple(self._notes),
            subscription_active=self.subscription_active,
            errored=self.errored,
            error=self.last_error,
        )

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a snapshot observer; returns a function that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def view_permissions(self, note: Note) -> ViewPermissions:
        return view_permissions(note, self._session_id)

    # Session lifecycle

    async def initialize(self, session_id: UUID | None) -> None:
        """Start a session: subscribe to the owner's feed, then load owned notes.

        Subscribing first means changes racing the fetch are buffered in the
        mailbox and reconciled by id once the fetch result is in place.
        """
        await self.teardown()
        if session_id is None:
            raise AuthorizationError("You must be logged in to view your notes")

        self._epoch += 1
        epoch = self._epoch
        self._session_id = session_id

        try:
            subscription = await self._feed.subscribe(session_id, self._make_enqueue(epoch))
        except NoteAppError as err:
            self._mark_failed(epoch, err)
            raise FetchError() from err
        if epoch != self._epoch:
            await self._feed.unsubscribe(subscription)
            return
        self._subscription = subscription

        try:
            notes = await self._service.list_owned(session_id)
        except NoteAppError as err:
            if epoch == self._epoch:
                await self._release_subscription()
                self._mark_failed(epoch, err)
            raise FetchError() from err

        if epoch != self._epoch:
            logger.debug("Discarding fetch result for a closed session", extra={"user_id": str(session_id)})
            return

        self._notes = _newest_first(notes)
        self._consumer = asyncio.create_task(self._consume())
        logger.info("Note set initialized", extra={"user_id": str(session_id), "count": len(self._notes)})
        self._publish()

    async def start(self, session_id: UUID | None) -> OperationResult:
        """``initialize`` for the presentation layer: failures become a result."""
        try:
            await self.initialize(session_id)
        except NoteAppError as err:
            return self._fail(err)
        return OperationResult(ok=True)

    async def reload(self) -> OperationResult:
        """User-initiated retry of the initial load for the current session."""
        return await self.start(self._session_id)

    async def teardown(self) -> None:
        """Close the subscription and forget the session. Safe to call repeatedly."""
        self._epoch += 1
        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None
        await self._release_subscription()
        self._mailbox = asyncio.Queue()
        had_session = self._session_id is not None
        self._session_id = None
        self._notes = []
        self.errored = False
        self.last_error = None
        if had_session:
            self._publish()

    async def drain(self) -> None:
        """Wait until every queued feed event has been applied."""
        if self._consumer is not None:
            await self._mailbox.join()

    # Reconciliation

    def apply_remote_event(self, event: NoteEvent) -> None:
        """Merge one feed event into the note set. Idempotent per event."""
        if self._session_id is None:
            return
        if isinstance(event, (NoteInserted, NoteUpdated)) and event.note.user_id != self._session_id:
            logger.warning(
                "Dropping feed event for a note owned by someone else",
                extra={"note_id": str(event.note.id), "user_id": str(self._session_id)},
            )
            return

        if isinstance(event, NoteInserted):
            index = self._index_of(event.note.id)
            if index is None:
                self._notes.insert(0, event.note)
            else:
                self._notes[index] = event.note
        elif isinstance(event, NoteUpdated):
            index = self._index_of(event.note.id)
            if index is None:
                logger.debug("Update for a note not held locally", extra={"note_id": str(event.note.id)})
                return
            self._notes[index] = event.note
        elif isinstance(event, NoteDeleted):
            index = self._index_of(event.note_id)
            if index is None:
                return
            del self._notes[index]
        self._publish()

    # Author commands

    async def request_create(self, draft: NoteDraft) -> Note:
        epoch = self._epoch
        note = await self._service.create_note(draft, self._session_id)
        self._check_current(epoch, "create")
        return note

    async def request_update(self, note_id: UUID, patch: NotePatch) -> None:
        epoch = self._epoch
        await self._service.update_note(self._find(note_id), patch, self._session_id)
        self._check_current(epoch, "update")

    async def request_delete(self, note_id: UUID) -> None:
        epoch = self._epoch
        await self._service.delete_note(self._find(note_id), self._session_id)
        self._check_current(epoch, "delete")

    async def create_note(
        self,
        title: str,
        content: str,
        visibility: Visibility = Visibility.PRIVATE,
        tags: Iterable[str] = (),
    ) -> OperationResult:
        draft = NoteDraft(title=title, content=content, visibility=visibility, tags=list(tags))
        return await self._run(self.request_create(draft))

    async def update_note(self, note_id: UUID, patch: NotePatch) -> OperationResult:
        return await self._run(self.request_update(note_id, patch))

    async def delete_note(self, note_id: UUID) -> OperationResult:
        return await self._run(self.request_delete(note_id))

    # Internals

    def _make_enqueue(self, epoch: int) -> Callable[[NoteEvent], None]:
        def _enqueue(event: NoteEvent) -> None:
            if epoch != self._epoch:
                return
            self._mailbox.put_nowait((epoch, event))

        return _enqueue

    async def _consume(self) -> None:
        mailbox = self._mailbox
        while True:
            epoch, event = await mailbox.get()
            try:
                if epoch == self._epoch:
                    self.apply_remote_event(event)
            finally:
                mailbox.task_done()

    async def _run(self, operation) -> OperationResult:
        epoch = self._epoch
        try:
            await operation
        except NoteAppError as err:
            if epoch != self._epoch:
                return OperationResult(ok=False, message=err.user_message)
            return self._fail(err)
        if epoch == self._epoch:
            self.last_error = None
        return OperationResult(ok=True)

    def _fail(self, err: NoteAppError) -> OperationResult:
        logger.info("Note operation failed", extra={"error_type": type(err).__name__, "error": err.user_message})
        self.last_error = err.user_message
        return OperationResult(ok=False, message=err.user_message)

    def _check_current(self, epoch: int, action: str) -> None:
        if epoch != self._epoch:
            logger.debug("Response arrived after session change", extra={"action": action})

    def _mark_failed(self, epoch: int, err: NoteAppError) -> None:
        if epoch != self._epoch:
            return
        logger.warning("Initial note load failed", extra={"error": err.user_message})
        self._notes = []
        self.errored = True
        self.last_error = FetchError.default_message
        self._publish()

    async def _release_subscription(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await self._feed.unsubscribe(subscription)

    def _find(self, note_id: UUID) -> Note | None:
        index = self._index_of(note_id)
        return None if index is None else self._notes[index]

    def _index_of(self, note_id: UUID) -> int | None:
        for index, note in enumerate(self._notes):
            if note.id == note_id:
                return index
        return None

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)


def _newest_first(notes: Iterable[Note]) -> list[Note]:
    # stable sort keeps the store's order for equal timestamps
    return sorted(notes, key=lambda n: n.created_at, reverse=True)
