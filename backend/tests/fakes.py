"""In-memory policy store standing in for Supabase in tests.

``PolicyStore`` enforces the same row-level rules as the ``notes`` table
policies and emits change-feed events for committed writes, so the service
and synchronizer can be exercised end to end without a network. ``requests``
records every call that would have left the process.
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from notes_app.core.errors import NetworkError, RejectedError
from notes_app.core.models.note import Note, Visibility
from notes_app.core.models.profile import Profile
from notes_app.core.repositories.change_feed import ChangeFeed, FeedSubscription
from notes_app.core.repositories.implementations.supabase.note_repository import patch_to_row
from notes_app.core.repositories.note_repository import NoteRepository
from notes_app.core.repositories.profile_repository import ProfileRepository
from notes_app.core.schemas.note_events import NoteDeleted, NoteInserted, NoteUpdated

BASE_TIME = datetime(2024, 4, 1, 12, 0, tzinfo=UTC)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def make_note(owner: UUID, *, title: str = "Title", created: int = 0, public: bool = False, **extra) -> Note:
    return Note(
        id=extra.pop("id", None) or uuid4(),
        user_id=owner,
        title=title,
        content=extra.pop("content", "Body"),
        is_public=public,
        tags=extra.pop("tags", []),
        created_at=at(created),
        updated_at=at(created),
    )


class PolicyStore:
    """Rows plus the RLS rules: owners read/write their rows, anyone reads public rows."""

    def __init__(self) -> None:
        self.rows: dict[UUID, Note] = {}
        self.profiles: dict[UUID, Profile] = {}
        self.subscribers: list[tuple[FeedSubscription, object]] = []
        self.requests: list[str] = []
        self.fail_next: Exception | None = None
        self.clock = 100

    def seed(self, note: Note) -> Note:
        self.rows[note.id] = note
        return note

    def visible_to(self, viewer: UUID | None, note: Note) -> bool:
        return note.is_public or (viewer is not None and note.user_id == viewer)

    def record(self, action: str) -> None:
        self.requests.append(action)
        if self.fail_next is not None:
            err, self.fail_next = self.fail_next, None
            raise err

    def emit(self, event, owner: UUID) -> None:
        for subscription, callback in list(self.subscribers):
            if not subscription.closed and subscription.owner_id == owner:
                callback(event)

    def next_time(self) -> datetime:
        self.clock += 1
        return at(self.clock)


class FakeNoteRepository(NoteRepository):
    """Repository bound to one caller identity, like a client carrying that user's JWT."""

    def __init__(self, store: PolicyStore, viewer: UUID | None) -> None:
        self.store = store
        self.viewer = viewer

    async def fetch_owned(self, owner_id):
        self.store.record("fetch_owned")
        rows = [n for n in self.store.rows.values() if n.user_id == owner_id and self.store.visible_to(self.viewer, n)]
        return sorted(rows, key=lambda n: n.created_at, reverse=True)

    async def fetch_by_id(self, note_id):
        self.store.record("fetch_by_id")
        note = self.store.rows.get(note_id)
        if note is None or not self.store.visible_to(self.viewer, note):
            return None
        return note

    async def insert(self, draft, requester_id):
        self.store.record("insert")
        if requester_id != self.viewer:
            raise RejectedError("Failed to create note. Please try again.")
        now = self.store.next_time()
        note = Note(
            id=uuid4(),
            user_id=requester_id,
            title=draft.title,
            content=draft.content,
            is_public=draft.visibility is Visibility.PUBLIC,
            tags=draft.tags,
            created_at=now,
            updated_at=now,
        )
        self.store.rows[note.id] = note
        self.store.emit(NoteInserted(note=note), requester_id)
        return note

    async def update(self, note_id, patch, requester_id):
        self.store.record("update")
        note = self.store.rows.get(note_id)
        if note is None or note.user_id != requester_id or requester_id != self.viewer:
            raise RejectedError("Failed to update note. You may not have permission.")
        updated = note.model_copy(update={**patch_to_row(patch), "updated_at": self.store.next_time()})
        self.store.rows[note_id] = updated
        self.store.emit(NoteUpdated(note=updated), requester_id)

    async def delete(self, note_id, requester_id):
        self.store.record("delete")
        note = self.store.rows.get(note_id)
        if note is None or note.user_id != requester_id or requester_id != self.viewer:
            raise RejectedError("Failed to delete note. You may not have permission.")
        del self.store.rows[note_id]
        self.store.emit(NoteDeleted(note_id=note_id), requester_id)


class FakeProfileRepository(ProfileRepository):
    def __init__(self, store: PolicyStore) -> None:
        self.store = store
        self.fail = False

    async def get_profile(self, user_id):
        if self.fail:
            raise NetworkError()
        return self.store.profiles.get(user_id)


class FakeChangeFeed(ChangeFeed):
    def __init__(self, store: PolicyStore) -> None:
        self.store = store
        self.fail = False

    async def subscribe(self, owner_id, on_event):
        if self.fail:
            raise NetworkError("Could not connect to live updates. Please try again.")
        subscription = FeedSubscription(owner_id)
        self.store.subscribers.append((subscription, on_event))
        return subscription

    async def unsubscribe(self, subscription):
        subscription.closed = True
        self.store.subscribers = [(s, cb) for s, cb in self.store.subscribers if s is not subscription]

    @property
    def active(self) -> int:
        return len(self.store.subscribers)
