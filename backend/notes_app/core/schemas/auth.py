from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from notes_app.core.models.base import AppBaseModel


class AuthUser(AppBaseModel):
    """Session identity resolved from a Supabase JWT."""

    id: UUID
    email: str
    role: str | None = None
