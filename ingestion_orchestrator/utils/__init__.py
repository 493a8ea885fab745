"""
Utilities package for Ingestion Orchestrator

Logging helpers and runtime configuration.
"""

from .logger import setup_logger, get_logger, set_log_context, LoggerContext
from .config import Settings, load_settings

__all__ = [
    "setup_logger",
    "get_logger",
    "set_log_context",
    "LoggerContext",
    "Settings",
    "load_settings"
]
