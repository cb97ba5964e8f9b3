"""Memory-related schemas."""

from datetime import datetime
from typing import List, Optional

from domain.entities import memory as domain
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from schemas.common import TimestampSerializerMixin

# Request bodies are deliberately lenient: missing or empty fields are
# reported by the memory rules as 400 validation errors with a readable
# message, rather than as schema errors. Legacy snake_case keys sent by
# older clients are accepted too.


class MemoryCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image_ref: Optional[str] = Field(None, validation_alias=AliasChoices("imageRef", "image_url"))
    author_id: Optional[int] = Field(None, validation_alias=AliasChoices("authorId", "user_id"))
    author_name: Optional[str] = Field(None, validation_alias=AliasChoices("authorName", "username"))


class LikeRequest(BaseModel):
    user_id: Optional[int] = Field(None, validation_alias=AliasChoices("userId", "user_id"))


class CommentCreate(BaseModel):
    text: Optional[str] = None
    author_id: Optional[int] = Field(None, validation_alias=AliasChoices("authorId", "userId"))
    author_name: Optional[str] = Field(None, validation_alias=AliasChoices("authorName", "username"))


class Comment(TimestampSerializerMixin, BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    author_id: int = Field(alias="authorId")
    author_name: str = Field(alias="authorName")
    text: str
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, comment: domain.Comment) -> "Comment":
        return cls(
            author_id=comment.author_id,
            author_name=comment.author_name,
            text=comment.text,
            created_at=comment.created_at,
        )


class Memory(TimestampSerializerMixin, BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    author_id: int = Field(alias="authorId")
    author_name: str = Field(alias="authorName")
    title: str
    description: str = ""
    image_ref: str = Field(alias="imageRef")
    like_count: int = Field(0, alias="likeCount", ge=0)
    liked_by: List[int] = Field(default_factory=list, alias="likedBy")
    comments: List[Comment] = Field(default_factory=list)
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, memory: domain.Memory) -> "Memory":
        return cls(
            id=memory.id,
            author_id=memory.author_id,
            author_name=memory.author_name,
            title=memory.title,
            description=memory.description,
            image_ref=memory.image_ref,
            like_count=memory.like_count,
            liked_by=list(memory.liked_by),
            comments=[Comment.from_domain(comment) for comment in memory.comments],
            created_at=memory.created_at,
        )


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    detail: str
    kind: str


class HealthResponse(BaseModel):
    status: str
    store: str


__all__ = [
    "MemoryCreate",
    "LikeRequest",
    "CommentCreate",
    "Comment",
    "Memory",
    "MessageResponse",
    "ErrorResponse",
    "HealthResponse",
]
