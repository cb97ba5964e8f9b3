"""
Pydantic schemas for API request/response models.

This package organizes schemas by resource type:
- memories.py: Memory, comment, like and error schemas
- common.py: Shared base classes and mixins
"""

from schemas.common import TimestampSerializerMixin
from schemas.memories import (
    Comment,
    CommentCreate,
    ErrorResponse,
    HealthResponse,
    LikeRequest,
    Memory,
    MemoryCreate,
    MessageResponse,
)

__all__ = [
    "TimestampSerializerMixin",
    "Comment",
    "CommentCreate",
    "ErrorResponse",
    "HealthResponse",
    "LikeRequest",
    "Memory",
    "MemoryCreate",
    "MessageResponse",
]
