"""
Domain layer for internal business logic data structures.

Structure:
- entities/: Core data models (Memory, Comment, Actor)
- value_objects/: Immutable types and enums (UserRole, ConnectionState, ErrorKind)
- services/: Pure domain logic (validation, like toggling, access control)
- exceptions: Error taxonomy shared by every store
"""

from .entities import Actor, Comment, Memory
from .services import AccessControl, MemoryValidator, NewComment, NewMemory, toggle_like
from .value_objects import ConnectionState, ErrorKind, UserRole

__all__ = [
    # Entities
    "Actor",
    "Comment",
    "Memory",
    # Services
    "AccessControl",
    "MemoryValidator",
    "NewComment",
    "NewMemory",
    "toggle_like",
    # Value objects
    "ConnectionState",
    "ErrorKind",
    "UserRole",
]
