from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from notes_app.core.models.profile import Profile


class ProfileRepository(ABC):
    """Read access to user display profiles."""

    @abstractmethod
    async def get_profile(self, user_id: UUID) -> Profile | None:  # pragma: no cover - interface only
        """Return the profile for ``user_id`` or None if it does not exist."""
