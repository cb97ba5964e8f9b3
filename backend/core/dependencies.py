"""Shared dependencies for FastAPI endpoints."""

from fastapi import Request
from services.memory_store import MemoryStore


def get_memory_store(request: Request) -> MemoryStore:
    """
    Dependency to get the memory store instance from app state.

    The instance is created during application startup in the lifespan context.
    """
    return request.app.state.memory_store
