"""
Protocol definition shared by every memory store the client can talk to.

Implemented by:
- RemoteMemoryStore (HTTP client to the Memories API)
- LocalFallbackStore (JSON key-value file on this machine)
- MemoryStore (the server-side store, usable in-process)
"""

from typing import List, Optional, Protocol, runtime_checkable

from domain.entities.memory import Actor, Comment, Memory
from domain.value_objects.enums import ConnectionState


@runtime_checkable
class MemoryRepository(Protocol):
    """The operation set every store exposes to the ClientController."""

    @property
    def state(self) -> ConnectionState: ...

    def is_available(self) -> bool: ...

    # -- Write operations --

    async def create(
        self,
        title: Optional[str],
        image_ref: Optional[str],
        author_id: Optional[int],
        author_name: Optional[str],
        description: Optional[str] = None,
    ) -> Memory: ...

    async def delete(self, memory_id: str, actor: Optional[Actor]) -> None: ...

    async def toggle_like(self, memory_id: str, user_id: Optional[int]) -> Memory: ...

    async def add_comment(
        self,
        memory_id: str,
        author_id: Optional[int],
        author_name: Optional[str],
        text: Optional[str],
    ) -> Comment: ...

    # -- Query operations --

    async def list(self, limit: Optional[int] = None) -> List[Memory]: ...

    async def get_by_id(self, memory_id: str) -> Memory: ...
