"""Immutable value types and enums."""

from .enums import ConnectionState, ErrorKind, UserRole

__all__ = ["ConnectionState", "ErrorKind", "UserRole"]
