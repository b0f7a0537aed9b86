"""Error taxonomy for note operations.

Every error carries a ``user_message`` that is safe to show as-is. Raising one
of these guarantees the local note set was left untouched.
"""
from __future__ import annotations

NOTE_UNAVAILABLE_MESSAGE = "Note not found or is private"


class NoteAppError(Exception):
    """Base class for failures surfaced to the user."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


class ValidationError(NoteAppError, ValueError):
    """Input rejected before any request was sent."""

    default_message = "Title and content are required"


class AuthorizationError(NoteAppError):
    """Local ownership pre-check failed; no request was sent."""

    default_message = "You don't have permission to modify this note"


class RejectedError(NoteAppError):
    """The policy store refused the request."""

    default_message = "Request was rejected. You may not have permission."


class FetchError(NoteAppError):
    """A load could not complete."""

    default_message = "Failed to load notes. Please try again."


class NetworkError(NoteAppError):
    """Transport failure talking to the backend; the user has to retry."""

    default_message = "Network error. Please try again."
