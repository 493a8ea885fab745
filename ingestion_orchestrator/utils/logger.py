"""
Logging utilities for Ingestion Orchestrator

Provides structured logging configuration and per-logger context (submission,
batch, component) for the scheduler and its collaborators.
"""

import logging
import sys
import json
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pathlib import Path


# Attributes every LogRecord carries; anything else was passed through ``extra``.
_RESERVED_ATTRIBUTES = frozenset({
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'message', 'exc_info', 'exc_text',
    'stack_info'
})

PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Context set by LoggerContext; follows the current asyncio task, not the logger
_scoped_context: ContextVar[Dict[str, Any]] = ContextVar("ingestion_log_context", default={})


class StructuredFormatter(logging.Formatter):
    """
    Formatter for structured JSON logging.

    Emits one JSON object per record, with ``extra`` fields and the logger
    context collected under ``"extra"``.
    """

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info)
            }

        if self.include_extra:
            extra_fields = {
                key: value for key, value in record.__dict__.items()
                if key not in _RESERVED_ATTRIBUTES
            }
            if extra_fields:
                log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class LogContextFilter(logging.Filter):
    """
    Filter that stamps context fields onto every record of a logger.

    Used to tag scheduler records with the component name and the batch or
    submission currently being handled.
    """

    def __init__(self):
        super().__init__()
        self.context = {}

    def set_context(self, **kwargs):
        """Set context variables for logging."""
        self.context.update(kwargs)

    def clear_context(self):
        """Clear all context variables."""
        self.context.clear()

    def filter(self, record: logging.LogRecord) -> bool:
        """Add logger context and task-scoped context to log record."""
        for key, value in {**self.context, **_scoped_context.get()}.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def setup_logger(
    name: str,
    level: str = "INFO",
    structured: bool = True,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up a logger with console (and optionally file) output.

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Whether to use structured JSON logging
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    # Avoid adding handlers multiple times
    if any(getattr(handler, "_ingestion_handler", False) for handler in logger.handlers):
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
        return logger

    formatter = StructuredFormatter() if structured else logging.Formatter(PLAIN_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    console_handler._ingestion_handler = True
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        file_handler._ingestion_handler = True
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def _context_filter(logger: logging.Logger) -> LogContextFilter:
    context_filter = getattr(logger, "context_filter", None)
    if context_filter is None:
        context_filter = LogContextFilter()
        logger.addFilter(context_filter)
        logger.context_filter = context_filter
    return context_filter


def set_log_context(logger: logging.Logger, **kwargs):
    """
    Set context variables for a logger.

    Args:
        logger: Logger instance
        **kwargs: Context variables to set
    """
    _context_filter(logger).set_context(**kwargs)


def clear_log_context(logger: logging.Logger):
    """Clear context variables for a logger."""
    if hasattr(logger, 'context_filter'):
        logger.context_filter.clear_context()


class LoggerContext:
    """
    Context manager for temporary log context.

    Sets context variables on entry and restores the previous context on exit.
    The variables are bound to the current asyncio task (or thread), so records
    logged concurrently by other tasks through the same logger do not see them.
    """

    def __init__(self, logger: logging.Logger, **kwargs):
        self.logger = logger
        self.context = kwargs
        self._token = None

    def __enter__(self):
        """Set temporary context."""
        _context_filter(self.logger)
        self._token = _scoped_context.set({**_scoped_context.get(), **self.context})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore old context."""
        _scoped_context.reset(self._token)
