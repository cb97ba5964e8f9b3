"""
Unit tests for the memory mutation and validation rules.
"""

import pytest
from domain.entities.memory import Actor
from domain.exceptions import PermissionDeniedError, ValidationError
from domain.services.memory_rules import AccessControl, MemoryValidator, new_memory_id, toggle_like
from domain.value_objects.enums import UserRole


class TestImageRefValidation:
    @pytest.mark.parametrize(
        "image_ref",
        [
            "https://x/img.jpg",
            "http://example.com/photos/beach.png?size=large",
            "data:image/png;base64,iVBORw0KGgo=",
        ],
    )
    def test_accepts_links_and_embedded_payloads(self, image_ref):
        assert MemoryValidator.is_valid_image_ref(image_ref)

    @pytest.mark.parametrize(
        "image_ref",
        ["not a url", "example.com/img.jpg", "https://", "/relative/path.jpg", "data:"],
    )
    def test_rejects_malformed_links(self, image_ref):
        assert not MemoryValidator.is_valid_image_ref(image_ref)


class TestValidateNewMemory:
    def test_trims_and_defaults_description(self):
        new_memory = MemoryValidator.validate_new_memory(
            title="  Beach day ",
            image_ref=" https://x/img.jpg ",
            author_id=7,
            author_name=" ana ",
        )

        assert new_memory.title == "Beach day"
        assert new_memory.image_ref == "https://x/img.jpg"
        assert new_memory.author_name == "ana"
        assert new_memory.description == ""

    @pytest.mark.parametrize("title,image_ref", [("", "https://x/img.jpg"), ("Beach", ""), ("   ", None)])
    def test_caption_and_image_are_required(self, title, image_ref):
        with pytest.raises(ValidationError, match="Caption and image URL are required"):
            MemoryValidator.validate_new_memory(title=title, image_ref=image_ref, author_id=7, author_name="ana")

    def test_invalid_image_url(self):
        with pytest.raises(ValidationError, match="valid image URL"):
            MemoryValidator.validate_new_memory(
                title="Beach", image_ref="beach.jpg", author_id=7, author_name="ana"
            )

    def test_author_is_required(self):
        with pytest.raises(ValidationError, match="Author id is required"):
            MemoryValidator.validate_new_memory(
                title="Beach", image_ref="https://x/img.jpg", author_id=None, author_name="ana"
            )
        with pytest.raises(ValidationError, match="Author name is required"):
            MemoryValidator.validate_new_memory(
                title="Beach", image_ref="https://x/img.jpg", author_id=7, author_name="  "
            )


class TestValidateNewComment:
    def test_valid_comment(self):
        comment = MemoryValidator.validate_new_comment(9, "cy", "  nice shot ")
        assert comment.text == "nice shot"
        assert comment.author_id == 9

    def test_empty_text(self):
        with pytest.raises(ValidationError, match="Comment text is required"):
            MemoryValidator.validate_new_comment(9, "cy", "   ")

    def test_missing_author(self):
        with pytest.raises(ValidationError):
            MemoryValidator.validate_new_comment(None, "cy", "hello")


class TestValidateLimit:
    def test_bounds(self):
        assert MemoryValidator.validate_limit(1, 500) == 1
        assert MemoryValidator.validate_limit(500, 500) == 500
        with pytest.raises(ValidationError):
            MemoryValidator.validate_limit(0, 500)
        with pytest.raises(ValidationError):
            MemoryValidator.validate_limit(501, 500)


class TestToggleLike:
    def test_like_then_unlike_restores_state(self):
        liked_by, liked = toggle_like([3], 9)
        assert liked is True
        assert liked_by == [3, 9]

        liked_by, liked = toggle_like(liked_by, 9)
        assert liked is False
        assert liked_by == [3]

    def test_input_is_not_modified(self):
        original = [1, 2]
        toggle_like(original, 3)
        assert original == [1, 2]

    def test_collapses_duplicate_legacy_entries(self):
        liked_by, liked = toggle_like([4, 4, 5], 6)
        assert liked_by == [4, 5, 6]

        liked_by, liked = toggle_like([4, 4, 5], 4)
        assert liked is False
        assert liked_by == [5]

    def test_membership_tracks_parity(self):
        liked_by = []
        for call in range(1, 8):
            liked_by, _ = toggle_like(liked_by, 9)
            assert (9 in liked_by) == (call % 2 == 1)
            assert len(liked_by) == len(set(liked_by))


class TestAccessControl:
    def test_author_can_delete(self):
        assert AccessControl.can_delete(Actor(id=7, name="ana"), 7)

    def test_admin_can_delete_any(self):
        assert AccessControl.can_delete(Actor(id=1, name="root", role=UserRole.ADMIN), 7)

    def test_other_member_cannot_delete(self):
        with pytest.raises(PermissionDeniedError, match="only delete your own posts"):
            AccessControl.raise_if_cannot_delete(Actor(id=8, name="bob"), 7)

    def test_anonymous_cannot_delete(self):
        with pytest.raises(PermissionDeniedError, match="Please sign in"):
            AccessControl.raise_if_cannot_delete(None, 7)


def test_memory_ids_are_unique_hex():
    ids = {new_memory_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(len(memory_id) == 32 and int(memory_id, 16) >= 0 for memory_id in ids)
