"""Memory routes: create, list, fetch, delete, like/unlike and comment."""

from typing import List, Optional

import schemas
from core import get_settings
from core.dependencies import get_memory_store
from domain.entities.memory import Actor
from fastapi import APIRouter, Depends, Query, Request, status
from infrastructure.auth import require_actor
from services.memory_store import MemoryStore
from slowapi import Limiter
from slowapi.util import get_remote_address

router = APIRouter(
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": schemas.ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": schemas.ErrorResponse},
    }
)

NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": schemas.ErrorResponse}}

limiter = Limiter(key_func=get_remote_address, enabled=get_settings().rate_limit_enabled)


@router.get("", response_model=List[schemas.Memory])
async def list_memories(
    limit: Optional[int] = Query(None, description="Maximum number of memories to return"),
    store: MemoryStore = Depends(get_memory_store),
):
    """List memories, newest first."""
    memories = await store.list(limit)
    return [schemas.Memory.from_domain(memory) for memory in memories]


@router.post(
    "",
    response_model=schemas.Memory,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_429_TOO_MANY_REQUESTS: {"model": schemas.ErrorResponse}},
)
@limiter.limit(get_settings().create_rate_limit)
async def create_memory(
    request: Request,
    memory: schemas.MemoryCreate,
    store: MemoryStore = Depends(get_memory_store),
):
    """
    Post a new memory.

    Returns:
        - 201: The created memory
        - 400: Caption or image missing, invalid image URL, or missing author
        - 429: Too many requests (rate limited)
        - 503: Store unavailable
    """
    created = await store.create(
        title=memory.title,
        description=memory.description,
        image_ref=memory.image_ref,
        author_id=memory.author_id,
        author_name=memory.author_name,
    )
    return schemas.Memory.from_domain(created)


@router.get("/{memory_id}", response_model=schemas.Memory, responses=NOT_FOUND)
async def get_memory(memory_id: str, store: MemoryStore = Depends(get_memory_store)):
    """Get a specific memory by ID."""
    return schemas.Memory.from_domain(await store.get_by_id(memory_id))


@router.delete(
    "/{memory_id}",
    response_model=schemas.MessageResponse,
    responses={
        **NOT_FOUND,
        status.HTTP_401_UNAUTHORIZED: {"model": schemas.ErrorResponse},
        status.HTTP_403_FORBIDDEN: {"model": schemas.ErrorResponse},
    },
)
async def delete_memory(
    memory_id: str,
    actor: Actor = Depends(require_actor),
    store: MemoryStore = Depends(get_memory_store),
):
    """Delete a memory. (Author or admin only)"""
    await store.delete(memory_id, actor)
    return {"message": "Memory deleted successfully"}


@router.post("/{memory_id}/like", response_model=schemas.Memory, responses=NOT_FOUND)
async def toggle_like(
    memory_id: str,
    like: schemas.LikeRequest,
    store: MemoryStore = Depends(get_memory_store),
):
    """Like the memory, or unlike it if the user already liked it."""
    return schemas.Memory.from_domain(await store.toggle_like(memory_id, like.user_id))


@router.post(
    "/{memory_id}/comments",
    response_model=schemas.Comment,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
)
async def add_comment(
    memory_id: str,
    comment: schemas.CommentCreate,
    store: MemoryStore = Depends(get_memory_store),
):
    """Append a comment to a memory."""
    created = await store.add_comment(
        memory_id,
        author_id=comment.author_id,
        author_name=comment.author_name,
        text=comment.text,
    )
    return schemas.Comment.from_domain(created)
