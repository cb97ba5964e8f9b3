"""
Domain enums for type-safe constants.
"""

from enum import Enum


class UserRole(str, Enum):
    """Actor roles supplied by the user directory."""

    ADMIN = "admin"  # May delete any memory
    MEMBER = "member"  # May delete only their own memories

    def __str__(self) -> str:
        return self.value


class ConnectionState(str, Enum):
    """Connection lifecycle of a backing store."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"

    def __str__(self) -> str:
        return self.value


class ErrorKind(str, Enum):
    """Machine-readable error kinds returned alongside error messages."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    AUTHENTICATION = "authentication"
    UNAVAILABLE = "unavailable"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"

    def __str__(self) -> str:
        return self.value
