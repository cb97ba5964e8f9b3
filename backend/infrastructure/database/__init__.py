"""
Database infrastructure package.

Re-exports commonly used database components for convenient imports.
"""

from .connection import (
    Base,
    create_session_maker,
    create_store_engine,
    get_database_type,
    init_db,
    reset_write_lock,
    retry_on_db_lock,
    serialized_commit,
    serialized_write,
)
from .models import MemoryRecord

__all__ = [
    # Connection
    "Base",
    "create_session_maker",
    "create_store_engine",
    "get_database_type",
    "init_db",
    "reset_write_lock",
    "retry_on_db_lock",
    "serialized_commit",
    "serialized_write",
    # Models
    "MemoryRecord",
]
