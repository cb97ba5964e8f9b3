"""Client side of the Memories app: remote API client, local fallback and the controller that picks between them."""

from .api_client import RemoteMemoryStore
from .base import MemoryRepository
from .controller import ClientController
from .local_store import LocalFallbackStore
from .normalization import normalize_memories, normalize_memory

__all__ = [
    "ClientController",
    "LocalFallbackStore",
    "MemoryRepository",
    "RemoteMemoryStore",
    "normalize_memories",
    "normalize_memory",
]
