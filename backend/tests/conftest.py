from __future__ import annotations

import os
from uuid import UUID, uuid4

os.environ.setdefault("APP_SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("APP_SUPABASE_ANON_KEY", "test-anon-key")

import pytest  # noqa: E402
from fakes import FakeChangeFeed, FakeNoteRepository, FakeProfileRepository, PolicyStore  # noqa: E402

from notes_app.core.services.note_service import NoteService  # noqa: E402
from notes_app.core.services.note_synchronizer import NoteSynchronizer  # noqa: E402


@pytest.fixture()
def store() -> PolicyStore:
    return PolicyStore()


@pytest.fixture()
def alice() -> UUID:
    return uuid4()


@pytest.fixture()
def bob() -> UUID:
    return uuid4()


@pytest.fixture()
def feed(store) -> FakeChangeFeed:
    return FakeChangeFeed(store)


@pytest.fixture()
def profiles(store) -> FakeProfileRepository:
    return FakeProfileRepository(store)


@pytest.fixture()
def service(store, alice, profiles) -> NoteService:
    """Note service acting as alice."""
    return NoteService(FakeNoteRepository(store, alice), profiles)


@pytest.fixture()
def synchronizer(service, feed) -> NoteSynchronizer:
    return NoteSynchronizer(service, feed)
