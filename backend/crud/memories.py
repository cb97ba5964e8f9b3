"""
CRUD operations for Memory documents.

These functions take a session and work on MemoryRecord rows. Business rules
(validation, like toggling, ownership) live in domain.services.memory_rules;
locking and connection handling live in services.memory_store.
"""

import logging
from datetime import datetime
from typing import List, Optional

from domain.entities.memory import Comment
from domain.services.memory_rules import NewMemory, new_memory_id
from infrastructure.database import MemoryRecord, retry_on_db_lock, serialized_commit
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

logger = logging.getLogger("CRUD")


@retry_on_db_lock(max_retries=5, initial_delay=0.1, backoff_factor=2)
async def create_memory(db: AsyncSession, new_memory: NewMemory, created_at: datetime) -> MemoryRecord:
    """Persist a validated memory with zeroed social metadata."""
    record = MemoryRecord(
        id=new_memory_id(),
        user_id=new_memory.author_id,
        username=new_memory.author_name,
        title=new_memory.title,
        description=new_memory.description,
        image_url=new_memory.image_ref,
        likes=0,
        liked_by=[],
        comments=[],
        created_at=created_at,
    )
    db.add(record)
    await serialized_commit(db)
    await db.refresh(record)
    return record


async def get_memories(db: AsyncSession, limit: int) -> List[MemoryRecord]:
    """Newest first, truncated to limit."""
    query = (
        select(MemoryRecord).order_by(MemoryRecord.created_at.desc(), MemoryRecord.id.desc()).limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_memory(db: AsyncSession, memory_id: str, for_update: bool = False) -> Optional[MemoryRecord]:
    """
    Get a memory by id.

    With for_update the row is locked until the session commits (PostgreSQL);
    SQLite ignores the clause and relies on serialized writes instead.
    """
    query = select(MemoryRecord).where(MemoryRecord.id == memory_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


@retry_on_db_lock(max_retries=5, initial_delay=0.1, backoff_factor=2)
async def delete_memory(db: AsyncSession, record: MemoryRecord) -> None:
    await db.delete(record)
    await serialized_commit(db)


@retry_on_db_lock(max_retries=5, initial_delay=0.1, backoff_factor=2)
async def update_likes(db: AsyncSession, record: MemoryRecord, liked_by: List[int]) -> MemoryRecord:
    """Replace likedBy and keep the stored count in step with it."""
    # JSON columns only detect reassignment, never in-place mutation
    record.liked_by = list(liked_by)
    record.likes = len(liked_by)
    await serialized_commit(db)
    await db.refresh(record)
    return record


@retry_on_db_lock(max_retries=5, initial_delay=0.1, backoff_factor=2)
async def append_comment(db: AsyncSession, record: MemoryRecord, comment: Comment) -> MemoryRecord:
    record.comments = list(record.comments or []) + [comment.to_document()]
    await serialized_commit(db)
    await db.refresh(record)
    return record
