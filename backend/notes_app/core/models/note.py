from __future__ import annotations

from enum import Enum
from uuid import UUID  # noqa: TCH003

from pydantic import Field, field_validator

from notes_app.core.tags import normalize_tags

from .base import TimestampedModel


class Visibility(str, Enum):
    """Who may read a note besides its author."""

    PRIVATE = "private"
    PUBLIC = "public"

    @classmethod
    def from_flag(cls, is_public: bool) -> Visibility:
        return cls.PUBLIC if is_public else cls.PRIVATE


class Note(TimestampedModel):
    """Note as stored in the ``notes`` table."""

    id: UUID = Field(description="Unique note identifier")
    user_id: UUID = Field(description="Owner of the note")

    title: str = Field(min_length=1, description="Note title")
    content: str = Field(min_length=1, description="Markdown body")

    is_public: bool = Field(default=False, description="Readable by anyone when true")
    tags: list[str] = Field(default_factory=list, description="Lowercase tags, insertion ordered")

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str]:
        return normalize_tags(v)

    @property
    def visibility(self) -> Visibility:
        return Visibility.from_flag(self.is_public)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "7d0f7e9e-3d2b-4a8e-9b59-0c1f3f6d7c11",
                    "user_id": "5b1c2a4e-8f0d-4c7a-a2f1-3e9d8b6c4a20",
                    "title": "Weekly review",
                    "content": "## Done\n- shipped tags\n\n## Next\n- public links",
                    "is_public": False,
                    "tags": ["work", "review"],
                    "created_at": "2024-04-02T09:30:00+00:00",
                    "updated_at": "2024-04-02T09:30:00+00:00",
                }
            ]
        }
    }
