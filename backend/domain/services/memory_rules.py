"""
Mutation and validation rules for the Memory aggregate.

Both the server store and the local fallback store apply these rules, so the
invariants (likeCount == |likedBy|, append-only comments, author-or-admin
deletion) hold no matter which store accepted the write.
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

from domain.entities.memory import Actor
from domain.exceptions import PermissionDeniedError, ValidationError

EMBEDDED_IMAGE_PREFIX = "data:"


def new_memory_id() -> str:
    """Opaque 32-hex identifier. Random, so ids are never reused after deletion."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class NewMemory:
    """Validated, trimmed input for a memory that is about to be created."""

    title: str
    description: str
    image_ref: str
    author_id: int
    author_name: str


@dataclass(frozen=True)
class NewComment:
    """Validated, trimmed input for a comment that is about to be appended."""

    author_id: int
    author_name: str
    text: str


class MemoryValidator:
    """Validates user-supplied input before anything is persisted."""

    @staticmethod
    def is_valid_image_ref(image_ref: str) -> bool:
        """
        Check that an image reference is usable.

        Embedded payloads (data URIs) are accepted as-is. Links must be
        absolute URLs with a scheme and a host.
        """
        if image_ref.startswith(EMBEDDED_IMAGE_PREFIX):
            return len(image_ref) > len(EMBEDDED_IMAGE_PREFIX)
        try:
            parts = urlsplit(image_ref)
        except ValueError:
            return False
        return bool(parts.scheme) and bool(parts.netloc) and " " not in image_ref

    @staticmethod
    def validate_author(author_id: Optional[int], author_name: Optional[str]) -> Tuple[int, str]:
        if author_id is None or isinstance(author_id, bool):
            raise ValidationError("Author id is required")
        try:
            author_id = int(author_id)
        except (TypeError, ValueError):
            raise ValidationError("Author id must be an integer")
        author_name = (author_name or "").strip()
        if not author_name:
            raise ValidationError("Author name is required")
        return author_id, author_name

    @classmethod
    def validate_new_memory(
        cls,
        title: Optional[str],
        image_ref: Optional[str],
        author_id: Optional[int],
        author_name: Optional[str],
        description: Optional[str] = None,
    ) -> NewMemory:
        """
        Validate a post submission.

        Raises:
            ValidationError: caption or image missing, malformed link, or
                missing author
        """
        title = (title or "").strip()
        image_ref = (image_ref or "").strip()
        if not title or not image_ref:
            raise ValidationError("Caption and image URL are required")
        if not cls.is_valid_image_ref(image_ref):
            raise ValidationError("Please enter a valid image URL")
        author_id, author_name = cls.validate_author(author_id, author_name)
        return NewMemory(
            title=title,
            description=(description or "").strip(),
            image_ref=image_ref,
            author_id=author_id,
            author_name=author_name,
        )

    @classmethod
    def validate_new_comment(
        cls, author_id: Optional[int], author_name: Optional[str], text: Optional[str]
    ) -> NewComment:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text is required")
        author_id, author_name = cls.validate_author(author_id, author_name)
        return NewComment(author_id=author_id, author_name=author_name, text=text)

    @staticmethod
    def validate_user_id(user_id: Optional[int]) -> int:
        if user_id is None or isinstance(user_id, bool):
            raise ValidationError("User id is required")
        try:
            return int(user_id)
        except (TypeError, ValueError):
            raise ValidationError("User id must be an integer")

    @staticmethod
    def validate_limit(limit: int, max_limit: int) -> int:
        if limit < 1 or limit > max_limit:
            raise ValidationError(f"limit must be between 1 and {max_limit}")
        return limit


def toggle_like(liked_by: List[int], user_id: int) -> Tuple[List[int], bool]:
    """
    Toggle a user's like.

    Returns a new likedBy list (the input is not modified) and whether the
    user likes the memory afterwards. Duplicate ids left behind by legacy
    records are collapsed, so the returned list is always a set in order.
    """
    deduped: List[int] = []
    for uid in liked_by:
        if uid not in deduped:
            deduped.append(uid)

    if user_id in deduped:
        return [uid for uid in deduped if uid != user_id], False
    return deduped + [user_id], True


class AccessControl:
    """Domain logic for memory ownership and permissions."""

    @staticmethod
    def can_delete(actor: Actor, author_id: int) -> bool:
        """
        Deletion is granted if the actor is an admin or the author.
        """
        return actor.is_admin or actor.id == author_id

    @staticmethod
    def raise_if_cannot_delete(actor: Optional[Actor], author_id: int) -> None:
        """
        Raises:
            PermissionDeniedError: actor is neither the author nor an admin
        """
        if actor is None:
            raise PermissionDeniedError("Please sign in to delete posts")
        if not AccessControl.can_delete(actor, author_id):
            raise PermissionDeniedError("You can only delete your own posts")
