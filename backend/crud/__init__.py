"""
CRUD operations module.

This module provides database operations organized by domain aggregate.
All CRUD functions are exported at the package level.
"""

# Memory operations
from .memories import (
    append_comment,
    create_memory,
    delete_memory,
    get_memories,
    get_memory,
    update_likes,
)

__all__ = [
    "append_comment",
    "create_memory",
    "delete_memory",
    "get_memories",
    "get_memory",
    "update_likes",
]
