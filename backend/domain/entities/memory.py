"""
Memory domain model.

This module defines the Memory aggregate used throughout the application.
It's separate from the SQLAlchemy model (MemoryRecord) and from the legacy
local-storage layout so that every store hands the same shape to callers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from domain.value_objects.enums import UserRole
from utils.serializers import isoformat_utc, parse_timestamp, serialize_utc_datetime


@dataclass
class Comment:
    """A single comment on a memory. Comments are never edited."""

    author_id: int
    author_name: str
    text: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "authorId": self.author_id,
            "authorName": self.author_name,
            "text": self.text,
            "createdAt": isoformat_utc(self.created_at),
        }

    def to_document(self) -> dict:
        """Stored layout, shared by the document table and local storage."""
        return {
            "userId": self.author_id,
            "username": self.author_name,
            "text": self.text,
            "created_at": isoformat_utc(self.created_at),
        }

    @classmethod
    def from_document(cls, doc: dict) -> "Comment":
        """
        Create a Comment from a stored document.

        Accepts both the stored layout (userId/username/created_at) and the
        canonical one (authorId/authorName/createdAt).
        """
        author_id = doc.get("authorId", doc.get("userId"))
        return cls(
            author_id=int(author_id) if author_id is not None else 0,
            author_name=doc.get("authorName") or doc.get("username") or "",
            text=doc.get("text") or "",
            created_at=parse_timestamp(doc.get("createdAt", doc.get("created_at"))),
        )


@dataclass
class Memory:
    """
    Domain model for a memory (a single post).

    Attributes:
        id: Opaque unique identifier, never reused
        author_id: Id of the creator
        author_name: Display name of the creator
        title: Caption
        description: Optional longer text
        image_ref: URL or embedded data URI
        like_count: Always equal to len(liked_by)
        liked_by: User ids that liked the memory, in like order
        comments: Comments, oldest first
        created_at: Creation timestamp (UTC)
    """

    id: str
    author_id: int
    author_name: str
    title: str
    image_ref: str
    created_at: datetime
    description: str = ""
    like_count: int = 0
    liked_by: List[int] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)

    @classmethod
    def from_db_model(cls, record) -> "Memory":
        """
        Create a domain Memory from a database record.

        Args:
            record: SQLAlchemy MemoryRecord instance

        Returns:
            Domain Memory instance
        """
        liked_by = list(record.liked_by or [])
        return cls(
            id=record.id,
            author_id=record.user_id,
            author_name=record.username,
            title=record.title,
            description=record.description or "",
            image_ref=record.image_url,
            like_count=len(liked_by),
            liked_by=liked_by,
            comments=[Comment.from_document(doc) for doc in (record.comments or [])],
            created_at=serialize_utc_datetime(record.created_at),
        )

    def to_dict(self) -> dict:
        """Canonical JSON shape consumed by renderers."""
        return {
            "id": self.id,
            "authorId": self.author_id,
            "authorName": self.author_name,
            "title": self.title,
            "description": self.description,
            "imageRef": self.image_ref,
            "likeCount": self.like_count,
            "likedBy": list(self.liked_by),
            "comments": [comment.to_dict() for comment in self.comments],
            "createdAt": isoformat_utc(self.created_at),
        }


@dataclass(frozen=True)
class Actor:
    """
    Explicit identity context for a write.

    The token is only needed when the write crosses the REST boundary; local
    stores ignore it.
    """

    id: int
    name: str
    role: UserRole = UserRole.MEMBER
    token: Optional[str] = field(default=None, repr=False, compare=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
