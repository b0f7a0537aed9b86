from __future__ import annotations

from datetime import datetime  # noqa: TCH003

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict


class AppBaseModel(PydanticBaseModel):
    """Base model for all domain models."""

    model_config = ConfigDict(
        from_attributes=True,
        extra="forbid",
        populate_by_name=True,
    )


class TimestampedModel(AppBaseModel):
    """Row with server-assigned timestamps (set by column defaults and the updated_at trigger)."""

    created_at: datetime
    updated_at: datetime | None = None
