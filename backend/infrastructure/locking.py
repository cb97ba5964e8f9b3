"""
Locking utilities for safe concurrent read-modify-write.

- File locks guard the local fallback store's JSON document so a mutation is
  an atomic read-modify-write of its storage key, even across processes.
- Record locks serialize mutations of a single memory inside the server
  process so concurrent like toggles never lose an update.

Platform Support:
- POSIX systems (Linux, macOS): Uses fcntl for process-safe file locking
- Windows: Uses msvcrt for file locking, or threading.Lock as fallback
"""

import asyncio
import json
import logging
import os
import sys
import tempfile
import threading
from contextlib import asynccontextmanager, contextmanager
from typing import Any, Dict

# Platform-specific imports
try:
    import fcntl

    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False
    # Windows fallback
    if sys.platform == "win32":
        try:
            import msvcrt

            HAS_MSVCRT = True
        except ImportError:
            HAS_MSVCRT = False
    else:
        HAS_MSVCRT = False

logger = logging.getLogger("Locking")

# Fallback lock for systems without fcntl or msvcrt
_file_locks: dict[str, threading.Lock] = {}
_locks_lock = threading.Lock()


def _get_thread_lock(file_path: str) -> threading.Lock:
    """Get or create a threading.Lock for the given file path."""
    with _locks_lock:
        if file_path not in _file_locks:
            _file_locks[file_path] = threading.Lock()
        return _file_locks[file_path]


@contextmanager
def file_lock(file_path: str, mode: str = "a+", shared: bool = False):
    """
    Context manager for cross-platform file locking.

    Platform-specific implementation:
    - POSIX (Linux, macOS): Uses fcntl for process-safe locking
    - Windows: Uses msvcrt for file locking (always exclusive)
    - Fallback: Uses threading.Lock (thread-safe only, not process-safe)

    Usage:
        with file_lock('/path/to/store.json', 'a+') as f:
            f.seek(0)
            data = f.read()

    Args:
        file_path: Path to the file to lock
        mode: File open mode ('a+' creates the file and allows read+write)
        shared: Take a shared (read) lock instead of an exclusive one

    Yields:
        File handle with the lock held

    Raises:
        OSError: If file cannot be opened or locked
    """
    # Ensure parent directory exists
    parent = os.path.dirname(file_path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    # Get threading lock as fallback
    thread_lock = None
    if not HAS_FCNTL and not HAS_MSVCRT:
        thread_lock = _get_thread_lock(file_path)
        thread_lock.acquire()
        logger.debug(f"Acquired thread lock on {file_path} (fallback mode)")

    f = None
    try:
        f = open(file_path, mode, encoding="utf-8")

        if HAS_FCNTL:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH if shared else fcntl.LOCK_EX)
            logger.debug(f"Acquired fcntl lock on {file_path}")
        elif HAS_MSVCRT:
            # msvcrt doesn't support shared locks, use exclusive
            f.seek(0)
            msvcrt.locking(f.fileno(), msvcrt.LK_LOCK, 1)
            logger.debug(f"Acquired msvcrt lock on {file_path}")

        yield f

    finally:
        if f:
            try:
                if HAS_FCNTL:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                elif HAS_MSVCRT:
                    try:
                        f.seek(0)
                        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
                    except OSError:
                        # File may already be unlocked on close
                        pass
            except OSError as e:
                logger.warning(f"Error releasing file lock on {file_path}: {e}")
            finally:
                f.close()

        if thread_lock:
            thread_lock.release()
            logger.debug(f"Released thread lock on {file_path}")


class DocumentFormatError(ValueError):
    """Raised when a JSON key-value document can't be decoded."""


def _lock_path(file_path: str) -> str:
    # The data file is swapped out on every write, so the lock lives beside it
    return f"{file_path}.lock"


def _load_document(file_path: str) -> Dict[str, Any]:
    if not os.path.exists(file_path):
        return {}
    try:
        with open(file_path, encoding="utf-8") as f:
            raw = f.read()
        if not raw.strip():
            return {}
        document = json.loads(raw)
    except ValueError as e:
        raise DocumentFormatError(f"{file_path} is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise DocumentFormatError("Key-value document must be a JSON object")
    return document


def _write_document(file_path: str, document: Dict[str, Any]) -> None:
    """Write to a sibling temp file, then rename it over the original."""
    directory = os.path.dirname(file_path) or "."
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{os.path.basename(file_path)}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(document, f, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, file_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def read_json_document(file_path: str) -> Dict[str, Any]:
    """
    Read a JSON key-value document under a shared lock.

    Returns:
        The document, or an empty dict if the file doesn't exist yet

    Raises:
        DocumentFormatError: file is not a JSON object
    """
    if not os.path.exists(file_path):
        return {}
    with file_lock(_lock_path(file_path), shared=True):
        return _load_document(file_path)


@contextmanager
def locked_json_document(file_path: str):
    """
    Atomic read-modify-write of a JSON key-value document.

    The yielded dict is written back when the block exits normally. If the
    block raises, the file is left untouched. The new content replaces the
    old file in one rename, so a crash mid-write never leaves partial JSON.

    Usage:
        with locked_json_document(path) as document:
            document["key"] = value
    """
    with file_lock(_lock_path(file_path)):
        document = _load_document(file_path)
        yield document
        _write_document(file_path, document)


# =============================================================================
# Per-record async locks
# =============================================================================


class RecordLocks:
    """
    Registry of asyncio locks keyed by record id.

    Locks are dropped once nobody holds or waits for them, so the registry
    only grows with the number of records being mutated concurrently.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
