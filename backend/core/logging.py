"""
Logging setup for the API server and the client tools.

setup_logging() is called once, by main.py for the server or by a script
before it builds a ClientController. Components log through named loggers
("MemoryStore", "LocalFallbackStore", "ClientController", ...), so the
format below shows which store handled or failed an operation.
"""

import logging
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are only useful when chasing a driver or transport bug
CHATTY_LOGGERS = ("aiosqlite", "httpx", "httpcore")


class SuppressPathsFilter(logging.Filter):
    """Drop access-log records for the given URL paths."""

    def __init__(self, paths: Iterable[str] = ("/health",)):
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in self.paths)


def setup_logging(debug_mode: bool = False, log_level: Optional[int] = None) -> None:
    """
    Configure the root logger.

    Args:
        debug_mode: Log at DEBUG instead of INFO
        log_level: Explicit level, wins over debug_mode
    """
    if log_level is None:
        log_level = logging.DEBUG if debug_mode else logging.INFO

    logging.basicConfig(level=log_level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=True)

    # Health probes hit the API every few seconds
    logging.getLogger("uvicorn.access").addFilter(SuppressPathsFilter())

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("Logging").info(f"Logging configured with level: {logging.getLevelName(log_level)}")


def get_logger(name: str) -> logging.Logger:
    """Named logger; components use their class name."""
    return logging.getLogger(name)
