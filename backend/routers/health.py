"""Health check routes."""

import schemas
from core.dependencies import get_memory_store
from fastapi import APIRouter, Depends
from services.memory_store import MemoryStore

router = APIRouter()


@router.get("/health", response_model=schemas.HealthResponse)
async def health_check(store: MemoryStore = Depends(get_memory_store)):
    """Health check endpoint. Reports the document store's connection state."""
    return {"status": "healthy", "store": store.state.value}
