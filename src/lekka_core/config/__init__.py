"""Configuration module for the Lekka ledger core."""

from lekka_core.config.logging import bind_session_context, configure_logging, get_logger
from lekka_core.config.settings import FlatSettings, get_settings

__all__ = [
    "FlatSettings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "bind_session_context",
]
