"""Tag normalization and note model validation."""

from __future__ import annotations

from uuid import uuid4

import pytest
from fakes import at
from pydantic import ValidationError as PydanticValidationError

from notes_app.core.models.note import Note, Visibility
from notes_app.core.schemas.note import NoteDraft, NotePatch
from notes_app.core.tags import add_tag, normalize_tag, normalize_tags, remove_tag


class TestTagHelpers:
    def test_repeated_input_collapses_to_one_lowercase_tag(self):
        tags: list[str] = []
        for raw in ("Work", "work", "work"):
            tags = add_tag(tags, raw)
        assert tags == ["work"]

    def test_blank_tags_are_ignored(self):
        assert add_tag(["a"], "   ") == ["a"]
        assert add_tag(["a"], None) == ["a"]
        assert normalize_tag("  ") is None

    def test_insertion_order_is_kept(self):
        assert normalize_tags(["Zeta", "alpha", "ZETA", " Beta "]) == ["zeta", "alpha", "beta"]

    def test_add_does_not_mutate_input(self):
        original = ["a"]
        add_tag(original, "b")
        assert original == ["a"]

    def test_remove_tag_matches_normalized_form(self):
        assert remove_tag(["work", "home"], " Work ") == ["home"]
        assert remove_tag(["work"], "missing") == ["work"]


class TestNoteModel:
    def _note(self, **overrides):
        data = {
            "id": uuid4(),
            "user_id": uuid4(),
            "title": "Title",
            "content": "Body",
            "created_at": at(0),
        }
        data.update(overrides)
        return Note(**data)

    def test_tags_are_normalized(self):
        note = self._note(tags=["Work", "work", "", "Home"])
        assert note.tags == ["work", "home"]

    def test_null_tags_become_empty(self):
        assert self._note(tags=None).tags == []

    def test_title_and_content_are_stripped(self):
        note = self._note(title="  Hello ", content="\n# Heading\n")
        assert note.title == "Hello"
        assert note.content == "# Heading"

    @pytest.mark.parametrize("field", ["title", "content"])
    def test_blank_text_is_rejected(self, field):
        with pytest.raises(PydanticValidationError):
            self._note(**{field: "   "})

    def test_visibility_follows_flag(self):
        assert self._note(is_public=True).visibility is Visibility.PUBLIC
        assert self._note().visibility is Visibility.PRIVATE


class TestDraftAndPatch:
    def test_draft_defaults_to_private(self):
        draft = NoteDraft(title="t", content="c")
        assert draft.visibility is Visibility.PRIVATE
        assert draft.tags == []

    def test_draft_allows_empty_text_for_service_validation(self):
        assert NoteDraft().title == ""

    def test_patch_only_reports_set_fields(self):
        patch = NotePatch(title="New", tags=["A", "a"])
        assert patch.changes() == {"title": "New", "tags": ["a"]}
