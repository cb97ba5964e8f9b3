"""
Pytest configuration and shared fixtures for backend tests.

This module provides fixtures for an in-memory memory store, test clients,
actor tokens and the local fallback store.

NOTE: Heavy imports (main, services) are done lazily inside fixtures
to avoid loading the entire app for tests that don't need it.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

# Add backend directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Must be set before the app (and its rate limiter) is first imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test_secret_key_for_testing_only")

# Type hints only - not imported at runtime
if TYPE_CHECKING:
    from typing import AsyncGenerator

    from httpx import AsyncClient
    from services.memory_store import MemoryStore
    from sqlalchemy.ext.asyncio import AsyncSession


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
UNREACHABLE_DATABASE_URL = "sqlite+aiosqlite:////nonexistent-dir/memories/unreachable.db"


def pytest_collection_modifyitems(items):
    """Auto-apply markers based on test directory."""
    for item in items:
        filepath = str(item.fspath)
        if "/tests/unit/" in filepath:
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in filepath:
            item.add_marker(pytest.mark.integration)


class FakeClock:
    """Deterministic UTC clock; every call advances by one second."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture(autouse=True)
def reset_sqlite_write_lock():
    """The SQLite write lock is bound to an event loop; each test gets a new loop."""
    from infrastructure.database import reset_write_lock

    reset_write_lock()
    yield
    reset_write_lock()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# Store fixtures
# ============================================================================


@pytest.fixture
async def memory_store(clock) -> "AsyncGenerator[MemoryStore, None]":
    """A connected MemoryStore on a fresh in-memory database."""
    from services.memory_store import MemoryStore

    store = MemoryStore(TEST_DATABASE_URL, reconnect_interval=0, clock=clock)
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
async def test_db() -> "AsyncGenerator[AsyncSession, None]":
    """
    Create a fresh test database for each test function.

    Uses an in-memory SQLite database that is created and destroyed
    for each test to ensure isolation.
    """
    from infrastructure.database import create_session_maker, create_store_engine, init_db

    test_engine = create_store_engine(TEST_DATABASE_URL)
    await init_db(test_engine)

    async with create_session_maker(test_engine)() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture
async def unreachable_store() -> "AsyncGenerator[MemoryStore, None]":
    """A MemoryStore whose database can never be opened."""
    from services.memory_store import MemoryStore

    store = MemoryStore(UNREACHABLE_DATABASE_URL, reconnect_interval=0)
    yield store
    await store.close()


@pytest.fixture
def fallback_path(tmp_path) -> Path:
    return tmp_path / "local_storage.json"


@pytest.fixture
def fallback_store(fallback_path, clock):
    from client.local_store import LocalFallbackStore

    return LocalFallbackStore(fallback_path, clock=clock)


# ============================================================================
# Actor fixtures
# ============================================================================


@pytest.fixture
def author():
    from domain.entities.memory import Actor

    return Actor(id=7, name="ana")


@pytest.fixture
def other_member():
    from domain.entities.memory import Actor

    return Actor(id=8, name="bob")


@pytest.fixture
def admin():
    from domain.entities.memory import Actor
    from domain.value_objects.enums import UserRole

    return Actor(id=1, name="root", role=UserRole.ADMIN)


@pytest.fixture
def author_token() -> str:
    from infrastructure.auth import generate_jwt_token

    return generate_jwt_token(user_id=7, username="ana")


@pytest.fixture
def other_member_token() -> str:
    from infrastructure.auth import generate_jwt_token

    return generate_jwt_token(user_id=8, username="bob")


@pytest.fixture
def admin_token() -> str:
    from domain.value_objects.enums import UserRole
    from infrastructure.auth import generate_jwt_token

    return generate_jwt_token(user_id=1, username="root", role=UserRole.ADMIN)


# ============================================================================
# App/Client fixtures (only loaded when needed)
# ============================================================================


def _get_app():
    """Lazy import of the FastAPI app."""
    from main import app

    return app


@pytest.fixture
async def client(memory_store) -> "AsyncGenerator[AsyncClient, None]":
    """Test client serving from the in-memory store."""
    from httpx import ASGITransport, AsyncClient

    app = _get_app()
    app.state.memory_store = memory_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def unavailable_client(unreachable_store) -> "AsyncGenerator[AsyncClient, None]":
    """Test client whose document store is unreachable."""
    from httpx import ASGITransport, AsyncClient

    app = _get_app()
    app.state.memory_store = unreachable_store

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set up mock environment variables for testing."""
    from core import reset_settings

    monkeypatch.setenv("JWT_SECRET", "test_secret_key_for_testing_only")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")

    # Reset settings cache so new env vars are picked up
    reset_settings()
    yield {"jwt_secret": "test_secret_key_for_testing_only"}
    reset_settings()
