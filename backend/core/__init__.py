"""
Core application modules: settings, logging and app wiring.

Settings are read once from the environment (or .env) and shared by the API
server and the client tools.
"""

from .logging import get_logger, setup_logging
from .settings import FALLBACK_MEMORIES_KEY, Settings, get_settings, reset_settings

__all__ = [
    "FALLBACK_MEMORIES_KEY",
    "Settings",
    "get_settings",
    "get_logger",
    "reset_settings",
    "setup_logging",
]
