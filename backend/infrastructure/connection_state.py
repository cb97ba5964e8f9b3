"""
Connection lifecycle tracking for backing stores.

    DISCONNECTED -> CONNECTING -> CONNECTED
    CONNECTING   -> DISCONNECTED      (attempt failed)
    CONNECTED    -> DISCONNECTED      (transport error)

A store owns one ConnectionMonitor and consults it before every operation.
After a failure, reconnection is attempted at most once per retry interval;
in between, is_available() is False so callers can hand off immediately
instead of waiting on a dead backend.
"""

import logging
import time
from typing import Callable, Optional

from domain.value_objects.enums import ConnectionState

logger = logging.getLogger("ConnectionState")


class ConnectionMonitor:
    def __init__(
        self,
        name: str,
        retry_interval: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.retry_interval = retry_interval
        self._clock = clock
        self._state = ConnectionState.DISCONNECTED
        self._last_failure_at: Optional[float] = None
        self.last_error: Optional[str] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    def _transition(self, new_state: ConnectionState) -> None:
        if new_state != self._state:
            logger.info(f"[{self.name}] {self._state} -> {new_state}")
            self._state = new_state

    def mark_connecting(self) -> None:
        self._transition(ConnectionState.CONNECTING)

    def mark_connected(self) -> None:
        self._last_failure_at = None
        self.last_error = None
        self._transition(ConnectionState.CONNECTED)

    def mark_disconnected(self, error: Optional[BaseException] = None) -> None:
        self._last_failure_at = self._clock()
        if error is not None:
            self.last_error = f"{type(error).__name__}: {error}"
            logger.warning(f"[{self.name}] connection lost: {self.last_error}")
        self._transition(ConnectionState.DISCONNECTED)

    def reset(self) -> None:
        """Back to DISCONNECTED with no failure on record (clean shutdown)."""
        self._last_failure_at = None
        self.last_error = None
        self._transition(ConnectionState.DISCONNECTED)

    def should_attempt(self) -> bool:
        """Whether an operation may try the backend right now."""
        if self._state == ConnectionState.CONNECTED:
            return True
        if self._last_failure_at is None:
            return True
        return self._clock() - self._last_failure_at >= self.retry_interval

    def is_available(self) -> bool:
        """
        Single availability query exposed to controllers.

        False only while the store is waiting out its retry interval after a
        failure; a store that has never been tried is presumed available.
        """
        return self.should_attempt()
