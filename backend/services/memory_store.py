"""
MemoryStore - the authoritative store for the Memory aggregate.

Owns the document collection and its connection lifecycle. Every operation
either completes against the database or raises one of the domain errors:
business-rule failures (ValidationError, NotFoundError, PermissionDeniedError)
come from the rules in domain.services.memory_rules, and any transport
failure is reported as UnavailableError after moving the store to
DISCONNECTED.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, List, Optional

import crud
from domain.entities.memory import Actor, Comment, Memory
from domain.exceptions import MemoryNotFoundError, UnavailableError
from domain.services.memory_rules import AccessControl, MemoryValidator, toggle_like
from domain.value_objects.enums import ConnectionState
from infrastructure.connection_state import ConnectionMonitor
from infrastructure.database import create_session_maker, create_store_engine, init_db
from infrastructure.locking import RecordLocks
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from utils.serializers import utc_now

logger = logging.getLogger("MemoryStore")

# Errors that mean "the database can't be reached", as opposed to bad input
CONNECTIVITY_ERRORS = (OperationalError, InterfaceError, OSError)


def _is_connectivity_error(exc: BaseException) -> bool:
    if isinstance(exc, CONNECTIVITY_ERRORS):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


class MemoryStore:
    """
    Document-backed store of memories.

    Mutations (toggle_like, add_comment, delete) run as read-modify-write
    under a per-record lock, with the row selected FOR UPDATE so concurrent
    requests on one memory can't lose updates.
    """

    def __init__(
        self,
        database_url: str,
        reconnect_interval: float = 5.0,
        default_limit: int = 100,
        max_limit: int = 500,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.database_url = database_url
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.monitor = ConnectionMonitor("MemoryStore", retry_interval=reconnect_interval)
        self._clock = clock
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker] = None
        self._record_locks = RecordLocks()

    @classmethod
    def from_settings(cls, settings) -> "MemoryStore":
        return cls(
            database_url=settings.database_url,
            reconnect_interval=settings.store_reconnect_interval,
            default_limit=settings.default_list_limit,
            max_limit=settings.max_list_limit,
        )

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    @property
    def state(self) -> ConnectionState:
        return self.monitor.state

    def is_available(self) -> bool:
        return self.monitor.is_available()

    async def connect(self) -> None:
        """
        DISCONNECTED -> CONNECTING -> CONNECTED.

        Creates the engine on first use and makes sure the collection exists.

        Raises:
            UnavailableError: the database could not be reached
        """
        self.monitor.mark_connecting()
        try:
            if self._engine is None:
                self._engine = create_store_engine(self.database_url)
                self._session_maker = create_session_maker(self._engine)
            await init_db(self._engine)
        except Exception as e:
            self.monitor.mark_disconnected(e)
            if not _is_connectivity_error(e):
                raise
            logger.error(f"Could not connect to the document store: {e}")
            raise UnavailableError() from e
        self.monitor.mark_connected()
        logger.info("Connected to the document store")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_maker = None
        self.monitor.reset()

    async def _ensure_connected(self) -> None:
        if self.monitor.state == ConnectionState.CONNECTED:
            return
        if not self.monitor.should_attempt():
            raise UnavailableError()
        await self.connect()

    @asynccontextmanager
    async def _session(self):
        """Yield a session; transport failures become UnavailableError."""
        await self._ensure_connected()
        try:
            async with self._session_maker() as db:
                yield db
        except Exception as e:
            if not _is_connectivity_error(e):
                raise
            logger.error(f"Document store operation failed: {e}", exc_info=True)
            self.monitor.mark_disconnected(e)
            raise UnavailableError() from e

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
        """
        Validate and persist a new memory.

        Raises:
            ValidationError: caption/image missing, malformed link or missing author
            UnavailableError: store unreachable
        """
        new_memory = MemoryValidator.validate_new_memory(
            title=title,
            image_ref=image_ref,
            author_id=author_id,
            author_name=author_name,
            description=description,
        )
        async with self._session() as db:
            record = await crud.create_memory(db, new_memory, created_at=self._clock())
            memory = Memory.from_db_model(record)
        logger.info(f"Memory {memory.id} created by user {memory.author_id}")
        return memory

    async def list(self, limit: Optional[int] = None) -> List[Memory]:
        """Newest first, at most limit memories."""
        limit = MemoryValidator.validate_limit(self.default_limit if limit is None else limit, self.max_limit)
        async with self._session() as db:
            records = await crud.get_memories(db, limit)
            return [Memory.from_db_model(record) for record in records]

    async def get_by_id(self, memory_id: str) -> Memory:
        async with self._session() as db:
            record = await crud.get_memory(db, memory_id)
            if record is None:
                raise MemoryNotFoundError(memory_id)
            return Memory.from_db_model(record)

    async def delete(self, memory_id: str, actor: Optional[Actor]) -> None:
        """
        Remove a memory. Only its author or an admin may do this.

        Raises:
            NotFoundError: no such memory
            PermissionDeniedError: actor is neither author nor admin
        """
        async with self._record_locks.hold(memory_id):
            async with self._session() as db:
                record = await self._get_for_update(db, memory_id)
                AccessControl.raise_if_cannot_delete(actor, record.user_id)
                await crud.delete_memory(db, record)
        logger.info(f"Memory {memory_id} deleted by user {actor.id} ({actor.role})")

    async def toggle_like(self, memory_id: str, user_id: Optional[int]) -> Memory:
        """Like if the user hasn't liked the memory yet, otherwise unlike."""
        user_id = MemoryValidator.validate_user_id(user_id)
        async with self._record_locks.hold(memory_id):
            async with self._session() as db:
                record = await self._get_for_update(db, memory_id)
                liked_by, liked = toggle_like(record.liked_by or [], user_id)
                record = await crud.update_likes(db, record, liked_by)
                memory = Memory.from_db_model(record)
        logger.debug(f"User {user_id} {'liked' if liked else 'unliked'} memory {memory_id}")
        return memory

    async def add_comment(
        self,
        memory_id: str,
        author_id: Optional[int],
        author_name: Optional[str],
        text: Optional[str],
    ) -> Comment:
        """Append a comment. Comments are kept in arrival order and never deduplicated."""
        new_comment = MemoryValidator.validate_new_comment(author_id, author_name, text)
        async with self._record_locks.hold(memory_id):
            async with self._session() as db:
                record = await self._get_for_update(db, memory_id)
                comment = Comment(
                    author_id=new_comment.author_id,
                    author_name=new_comment.author_name,
                    text=new_comment.text,
                    created_at=self._clock(),
                )
                await crud.append_comment(db, record, comment)
        return comment

    async def _get_for_update(self, db: AsyncSession, memory_id: str):
        record = await crud.get_memory(db, memory_id, for_update=True)
        if record is None:
            raise MemoryNotFoundError(memory_id)
        return record
