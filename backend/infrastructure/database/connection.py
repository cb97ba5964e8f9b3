import asyncio
import functools
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool, StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def get_database_type(url: str) -> str:
    """
    Extract database type from connection URL.

    Args:
        url: Database connection URL

    Returns:
        "sqlite" or "postgresql" or "unknown"
    """
    if url.startswith("sqlite"):
        return "sqlite"
    elif url.startswith("postgresql"):
        return "postgresql"
    return "unknown"


def create_store_engine(url: str) -> AsyncEngine:
    """
    Create an async engine with database-specific settings.

    Supports both SQLite (default for dev and tests) and PostgreSQL (production).
    """
    database_type = get_database_type(url)

    if database_type == "sqlite":
        # In-memory databases live inside a single connection, so it has to be shared
        in_memory = ":memory:" in url
        engine = create_async_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if in_memory else NullPool,
        )

        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            """Enable foreign key constraints in SQLite."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        logger.info("Database configured: SQLite (file-based, serialized writes)")
        return engine

    # PostgreSQL configuration: Connection pooling for concurrent access
    engine = create_async_engine(
        url,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,  # Recycle connections after 1 hour
    )
    logger.info(f"Database configured: {database_type} (with connection pooling)")
    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory with sensible defaults."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables if they don't exist (for fresh installs)."""
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# =============================================================================
# SQLite Write Serialization
# =============================================================================
# SQLite only supports one writer at a time. These primitives ensure all
# concurrent async writes are serialized through a process-wide lock.
# For PostgreSQL, these are transparent no-ops.

# Process-wide async lock for SQLite writes. Lazily created per event loop.
_sqlite_write_lock: asyncio.Lock | None = None


def _get_write_lock() -> asyncio.Lock:
    """Get or create the process-wide SQLite write lock (lazy, per event loop)."""
    global _sqlite_write_lock
    if _sqlite_write_lock is None:
        _sqlite_write_lock = asyncio.Lock()
    return _sqlite_write_lock


def reset_write_lock() -> None:
    """Reset the write lock. Used in tests when the event loop changes."""
    global _sqlite_write_lock
    _sqlite_write_lock = None


def retry_on_db_lock(max_retries=5, initial_delay=0.1, backoff_factor=2):
    """Retry on SQLite 'database is locked' errors with exponential backoff.

    Other errors (including every PostgreSQL error) propagate immediately.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            delay = initial_delay
            last_exc = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except Exception as exc:
                    if "database is locked" in str(exc).lower():
                        last_exc = exc
                        if attempt < max_retries - 1:
                            logger.warning(
                                f"SQLite locked (attempt {attempt + 1}/{max_retries}), "
                                f"retrying in {delay:.2f}s"
                            )
                            await asyncio.sleep(delay)
                            delay *= backoff_factor
                        continue
                    raise
            raise last_exc  # type: ignore[misc]

        return wrapper

    return decorator


class SerializedWrite:
    """Async context manager that serializes writes for SQLite.

    For PostgreSQL this is a transparent no-op.
    """

    def __init__(self, is_sqlite: bool):
        self._is_sqlite = is_sqlite

    async def __aenter__(self):
        if self._is_sqlite:
            await _get_write_lock().acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._is_sqlite:
            _get_write_lock().release()
        return False


def serialized_write(db: AsyncSession) -> SerializedWrite:
    """Return a context manager that serializes writes when the session is bound to SQLite."""
    bind = db.get_bind()
    return SerializedWrite(bind.dialect.name == "sqlite")


async def serialized_commit(db: AsyncSession) -> None:
    """Commit under the write lock (SQLite) or directly (PostgreSQL)."""
    async with serialized_write(db):
        await db.commit()
