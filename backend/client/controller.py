"""
ClientController - routes every operation to the primary store, or to the
local fallback when the primary can't be reached.

Rules:
- The primary is tried first unless it reports itself unavailable.
- An UnavailableError from the primary triggers exactly one attempt on the
  fallback. There is no retry loop and no background synchronisation.
- Business-rule errors (validation, not found, permission, authentication)
  are authoritative and propagate without touching the fallback.
- Exactly one store answers each call; results are never merged.
"""

import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from domain.entities.memory import Actor, Comment, Memory
from domain.exceptions import PermissionDeniedError, UnavailableError

from client.base import MemoryRepository

logger = logging.getLogger("ClientController")

T = TypeVar("T")

PRIMARY = "primary"
FALLBACK = "fallback"


def _require_actor(actor: Optional[Actor], action: str) -> Actor:
    if actor is None:
        raise PermissionDeniedError(f"Please sign in to {action}")
    return actor


class ClientController:
    def __init__(self, primary: MemoryRepository, fallback: MemoryRepository):
        self.primary = primary
        self.fallback = fallback
        # Which store answered the most recent call
        self.last_source: Optional[str] = None

    @classmethod
    def from_settings(cls, settings) -> "ClientController":
        from client.api_client import RemoteMemoryStore
        from client.local_store import LocalFallbackStore

        return cls(RemoteMemoryStore.from_settings(settings), LocalFallbackStore.from_settings(settings))

    async def close(self) -> None:
        close = getattr(self.primary, "close", None)
        if close is not None:
            await close()

    async def _run(self, operation: str, call: Callable[[MemoryRepository], Awaitable[T]]) -> T:
        if self.primary.is_available():
            try:
                result = await call(self.primary)
            except UnavailableError as e:
                logger.warning(f"{operation}: primary store unavailable ({e.message}), using local fallback")
            else:
                self.last_source = PRIMARY
                return result
        else:
            logger.info(f"{operation}: primary store is waiting to reconnect, using local fallback")

        result = await call(self.fallback)
        self.last_source = FALLBACK
        return result

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_memories(self, limit: Optional[int] = None) -> List[Memory]:
        return await self._run("list", lambda store: store.list(limit))

    async def get_memory(self, memory_id: str) -> Memory:
        return await self._run("get", lambda store: store.get_by_id(memory_id))

    # =========================================================================
    # Writes
    # =========================================================================

    async def post_memory(
        self,
        actor: Optional[Actor],
        title: Optional[str],
        image_ref: Optional[str],
        description: Optional[str] = None,
    ) -> Memory:
        actor = _require_actor(actor, "post memories")
        return await self._run(
            "create",
            lambda store: store.create(
                title=title,
                image_ref=image_ref,
                author_id=actor.id,
                author_name=actor.name,
                description=description,
            ),
        )

    async def toggle_like(self, actor: Optional[Actor], memory_id: str) -> Memory:
        actor = _require_actor(actor, "like posts")
        return await self._run("like", lambda store: store.toggle_like(memory_id, actor.id))

    async def add_comment(self, actor: Optional[Actor], memory_id: str, text: Optional[str]) -> Comment:
        actor = _require_actor(actor, "comment")
        return await self._run(
            "comment",
            lambda store: store.add_comment(memory_id, author_id=actor.id, author_name=actor.name, text=text),
        )

    async def delete_memory(self, actor: Optional[Actor], memory_id: str) -> None:
        actor = _require_actor(actor, "delete posts")
        await self._run("delete", lambda store: store.delete(memory_id, actor))
