"""
Ingestion Orchestrator

Accepts batches of item identifiers, groups them into fixed-size batches,
and fetches them from an external resource one batch at a time under a
global rate limit, with queryable status for every submission.

Key Features:
- Priority scheduling (HIGH, MEDIUM, LOW) with creation-time tie-break
- Single sequential drain loop with a fixed cooldown between batches
- Concurrent fetch of the items inside a batch
- Per-submission status reconciled from its batches
- Optional fetch retries, timeouts and an explicit failed state
- FastAPI transport and click CLI

Usage:
    from ingestion_orchestrator import BatchScheduler, SimulatedFetcher, Priority

    scheduler = BatchScheduler(SimulatedFetcher(latency_seconds=1.0), cooldown_seconds=5.0)
    await scheduler.start()

    submission_id = await scheduler.submit(["a", "b", "c", "d"], Priority.HIGH)
    status = await scheduler.get_submission(submission_id)
    print(status["status"])
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Core scheduler
from .core.scheduler import BatchScheduler, RetryPolicy

# Data models
from .models.batch import Batch, BatchStatus, Priority
from .models.submission import Submission, SubmissionStatus

# Collaborators
from .fetchers import BaseFetcher, SimulatedFetcher, HttpFetcher, create_fetcher

# Utilities
from .utils.config import Settings, load_settings
from .utils.logger import setup_logger, get_logger

# Exceptions
from .core.exceptions import (
    IngestionOrchestratorError,
    InvalidInputError,
    SubmissionNotFoundError,
    FetchError,
    FetchTimeoutError,
    InvalidTransitionError,
    QueueError,
    ConfigurationError,
    SchedulerError
)

__all__ = [
    # Core
    "BatchScheduler",
    "RetryPolicy",

    # Models
    "Batch",
    "BatchStatus",
    "Priority",
    "Submission",
    "SubmissionStatus",

    # Collaborators
    "BaseFetcher",
    "SimulatedFetcher",
    "HttpFetcher",
    "create_fetcher",

    # Utilities
    "Settings",
    "load_settings",
    "setup_logger",
    "get_logger",

    # Exceptions
    "IngestionOrchestratorError",
    "InvalidInputError",
    "SubmissionNotFoundError",
    "FetchError",
    "FetchTimeoutError",
    "InvalidTransitionError",
    "QueueError",
    "ConfigurationError",
    "SchedulerError",

    # Package metadata
    "__version__",
    "__license__"
]

# Package-level configuration
import logging
logging.getLogger(__name__).addHandler(logging.NullHandler())


def quick_start(**overrides) -> BatchScheduler:
    """
    Quick start helper for simple use cases.

    Builds a scheduler from environment settings, with keyword overrides
    such as ``cooldown_seconds=1.0``.

    Example:
        scheduler = quick_start(cooldown_seconds=1.0)
        submission_id = await scheduler.submit([1, 2, 3, 4])
    """
    return BatchScheduler.from_settings(load_settings(**overrides))
