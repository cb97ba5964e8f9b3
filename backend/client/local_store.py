"""
LocalFallbackStore - client-side mirror of the memory store.

Keeps memories in a JSON key-value file under FALLBACK_MEMORIES_KEY, in the
legacy local-storage layout:

    {"demo_memories": [{"id", "user_id", "username", "title", "description",
                        "image_url", "likes", "likedBy", "comments",
                        "created_at"}, ...]}

Applies the same validation and permission rules as the server store. Every
mutation is a read-modify-write of the whole key under an exclusive file
lock, so concurrent writers (threads or processes) never interleave.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from core.settings import FALLBACK_MEMORIES_KEY
from domain.entities.memory import Actor, Comment, Memory
from domain.exceptions import MemoryNotFoundError, UnavailableError
from domain.services.memory_rules import AccessControl, MemoryValidator, new_memory_id, toggle_like
from domain.value_objects.enums import ConnectionState
from infrastructure.locking import DocumentFormatError, locked_json_document, read_json_document
from utils.serializers import isoformat_utc, utc_now

from client.normalization import normalize_liked_by, normalize_memories, normalize_memory

logger = logging.getLogger("LocalFallbackStore")


def _backfill(record: dict) -> dict:
    """Give legacy records the social fields they may be missing."""
    liked_by = record.get("likedBy")
    record["likedBy"] = normalize_liked_by(liked_by if isinstance(liked_by, list) else [])
    if not isinstance(record.get("comments"), list):
        record["comments"] = []
    record["likes"] = len(record["likedBy"])
    return record


def _stored_records(document: dict) -> List[dict]:
    records = document.get(FALLBACK_MEMORIES_KEY)
    if not isinstance(records, list):
        return []
    return [_backfill(record) for record in records if isinstance(record, dict)]


def _author_id(record: dict) -> int:
    try:
        return int(record.get("user_id") or 0)
    except (TypeError, ValueError):
        return 0


class LocalFallbackStore:
    def __init__(
        self,
        path: Union[str, Path],
        default_limit: int = 100,
        max_limit: int = 500,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.path = str(path)
        self.default_limit = default_limit
        self.max_limit = max_limit
        self._clock = clock

    @classmethod
    def from_settings(cls, settings) -> "LocalFallbackStore":
        return cls(
            path=settings.resolved_fallback_store_path,
            default_limit=settings.default_list_limit,
            max_limit=settings.max_list_limit,
        )

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.CONNECTED

    def is_available(self) -> bool:
        return True

    # =========================================================================
    # File access
    # =========================================================================

    def _read_records(self) -> List[dict]:
        return _stored_records(read_json_document(self.path))

    async def _run(self, func, *args):
        """Run blocking file work off the event loop; unreadable storage becomes UnavailableError."""
        try:
            return await asyncio.to_thread(func, *args)
        except (OSError, DocumentFormatError) as e:
            logger.error(f"Local storage at {self.path} is unusable: {e}")
            raise UnavailableError("Local storage is unavailable") from e

    def _mutate(self, memory_id: str, mutation: Callable[[List[dict], int], object]):
        """
        Apply mutation(records, index) to one record under the file lock.

        The document is written back only if mutation returns without
        raising, so a failed rule check leaves local storage untouched.
        """
        with locked_json_document(self.path) as document:
            records = _stored_records(document)
            for index, record in enumerate(records):
                if str(record.get("id")) == str(memory_id):
                    break
            else:
                raise MemoryNotFoundError(memory_id)
            result = mutation(records, index)
            document[FALLBACK_MEMORIES_KEY] = records
        return result

    # =========================================================================
    # Operations
    # =========================================================================

    async def create(
        self,
        title: Optional[str],
        image_ref: Optional[str],
        author_id: Optional[int],
        author_name: Optional[str],
        description: Optional[str] = None,
    ) -> Memory:
        new_memory = MemoryValidator.validate_new_memory(
            title=title,
            image_ref=image_ref,
            author_id=author_id,
            author_name=author_name,
            description=description,
        )
        record = {
            "id": new_memory_id(),
            "user_id": new_memory.author_id,
            "username": new_memory.author_name,
            "title": new_memory.title,
            "description": new_memory.description,
            "image_url": new_memory.image_ref,
            "likes": 0,
            "likedBy": [],
            "comments": [],
            "created_at": isoformat_utc(self._clock()),
        }

        def insert():
            with locked_json_document(self.path) as document:
                document[FALLBACK_MEMORIES_KEY] = [record] + _stored_records(document)

        await self._run(insert)
        logger.info(f"Memory {record['id']} saved locally for user {new_memory.author_id}")
        return normalize_memory(record)

    async def list(self, limit: Optional[int] = None) -> List[Memory]:
        limit = MemoryValidator.validate_limit(self.default_limit if limit is None else limit, self.max_limit)
        memories = normalize_memories(await self._run(self._read_records))
        memories.sort(key=lambda memory: memory.created_at, reverse=True)
        return memories[:limit]

    async def get_by_id(self, memory_id: str) -> Memory:
        for record in await self._run(self._read_records):
            if str(record.get("id")) == str(memory_id):
                return normalize_memory(record)
        raise MemoryNotFoundError(memory_id)

    async def delete(self, memory_id: str, actor: Optional[Actor]) -> None:
        def remove(records: List[dict], index: int):
            AccessControl.raise_if_cannot_delete(actor, _author_id(records[index]))
            del records[index]

        await self._run(self._mutate, memory_id, remove)
        logger.info(f"Memory {memory_id} deleted locally by user {actor.id}")

    async def toggle_like(self, memory_id: str, user_id: Optional[int]) -> Memory:
        user_id = MemoryValidator.validate_user_id(user_id)

        def toggle(records: List[dict], index: int) -> dict:
            record = records[index]
            record["likedBy"], _ = toggle_like(record["likedBy"], user_id)
            record["likes"] = len(record["likedBy"])
            return record

        return normalize_memory(await self._run(self._mutate, memory_id, toggle))

    async def add_comment(
        self,
        memory_id: str,
        author_id: Optional[int],
        author_name: Optional[str],
        text: Optional[str],
    ) -> Comment:
        new_comment = MemoryValidator.validate_new_comment(author_id, author_name, text)
        comment = Comment(
            author_id=new_comment.author_id,
            author_name=new_comment.author_name,
            text=new_comment.text,
            created_at=self._clock(),
        )

        def append(records: List[dict], index: int):
            records[index]["comments"].append(comment.to_document())

        await self._run(self._mutate, memory_id, append)
        return comment

