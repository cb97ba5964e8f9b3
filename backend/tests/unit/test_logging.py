"""Tests for logging setup."""

import logging

from core.logging import SuppressPathsFilter, setup_logging


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("uvicorn.access", logging.INFO, __file__, 1, message, None, None)


class TestSuppressPathsFilter:
    def test_drops_health_checks(self):
        log_filter = SuppressPathsFilter()

        assert not log_filter.filter(_record('127.0.0.1 - "GET /health HTTP/1.1" 200'))
        assert log_filter.filter(_record('127.0.0.1 - "GET /memories HTTP/1.1" 200'))

    def test_custom_paths(self):
        log_filter = SuppressPathsFilter(paths=("/memories",))
        assert not log_filter.filter(_record('"GET /memories HTTP/1.1" 200'))


def test_setup_logging_levels():
    setup_logging(debug_mode=True)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("aiosqlite").level == logging.WARNING

    setup_logging(log_level=logging.WARNING, debug_mode=True)
    assert logging.getLogger().level == logging.WARNING

    setup_logging()
    assert logging.getLogger().level == logging.INFO
