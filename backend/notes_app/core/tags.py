"""Tag normalization shared by models, request schemas and the live note set.

Tags are lowercase, non-empty and unique; insertion order is kept for display.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def normalize_tag(raw: str | None) -> str | None:
    """Return the canonical form of a tag, or None when nothing is left."""
    if raw is None:
        return None
    tag = raw.strip().lower()
    return tag or None


def add_tag(tags: Iterable[str], raw: str | None) -> list[str]:
    """Append ``raw`` to ``tags`` unless it normalizes to empty or is already present."""
    result = list(tags)
    tag = normalize_tag(raw)
    if tag and tag not in result:
        result.append(tag)
    return result


def remove_tag(tags: Iterable[str], tag: str) -> list[str]:
    target = normalize_tag(tag)
    return [t for t in tags if t != target]


def normalize_tags(raw_tags: Iterable[str | None] | None) -> list[str]:
    result: list[str] = []
    for raw in raw_tags or []:
        result = add_tag(result, raw)
    return result
