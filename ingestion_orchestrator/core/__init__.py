"""
Core package for Ingestion Orchestrator

Contains the batch scheduler and the exception hierarchy.
"""

from .exceptions import (
    IngestionOrchestratorError,
    InvalidInputError,
    SubmissionNotFoundError,
    FetchError,
    FetchTimeoutError,
    InvalidTransitionError,
    QueueError,
    ConfigurationError,
    SchedulerError,
    error_registry
)
from .scheduler import BatchScheduler, RetryPolicy

__all__ = [
    "BatchScheduler",
    "RetryPolicy",
    "IngestionOrchestratorError",
    "InvalidInputError",
    "SubmissionNotFoundError",
    "FetchError",
    "FetchTimeoutError",
    "InvalidTransitionError",
    "QueueError",
    "ConfigurationError",
    "SchedulerError",
    "error_registry"
]
