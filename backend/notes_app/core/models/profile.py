from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from .base import AppBaseModel


class Profile(AppBaseModel):
    """Public display profile of a user, populated by the signup trigger."""

    id: UUID
    full_name: str | None = None
    avatar_url: str | None = None
