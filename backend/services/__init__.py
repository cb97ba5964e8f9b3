"""
Services layer for business logic.

This package contains service classes that handle business logic
and coordinate between different layers of the application.
"""

from .memory_store import MemoryStore

__all__ = [
    "MemoryStore",
]
