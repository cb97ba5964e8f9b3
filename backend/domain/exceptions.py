"""
Custom exception classes for the memories application.

Every error carries a machine-readable kind and the HTTP status it maps to,
so the same taxonomy is raised by the server store, the REST client and the
local fallback store.
"""

from fastapi import status

from domain.value_objects.enums import ErrorKind


class MemoriesError(Exception):
    """Base class for all business-rule and availability errors."""

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind.value}


class ValidationError(MemoriesError):
    """Raised when input is malformed or missing. User-correctable."""

    kind = ErrorKind.VALIDATION
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(MemoriesError):
    """Raised when an id does not resolve to a live record."""

    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class MemoryNotFoundError(NotFoundError):
    """Raised when a requested memory does not exist."""

    def __init__(self, memory_id: str):
        super().__init__(f"Memory with id {memory_id} not found")
        self.memory_id = memory_id


class PermissionDeniedError(MemoriesError):
    """Raised when the actor lacks rights to mutate or delete a record."""

    kind = ErrorKind.PERMISSION
    status_code = status.HTTP_403_FORBIDDEN


class AuthenticationError(MemoriesError):
    """Raised when an actor token is missing or invalid."""

    kind = ErrorKind.AUTHENTICATION
    status_code = status.HTTP_401_UNAUTHORIZED


class UnavailableError(MemoriesError):
    """Raised when the backing store cannot be reached."""

    kind = ErrorKind.UNAVAILABLE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Memory store is temporarily unavailable"):
        super().__init__(message)


class ConfigurationError(ValueError):
    """Raised when there's an error in configuration parsing or validation."""

    def __init__(self, message: str):
        super().__init__(f"Configuration error: {message}")

