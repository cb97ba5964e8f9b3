"""FastAPI routers for modular endpoint organization."""

from . import health, memories

__all__ = [
    "health",
    "memories",
]
