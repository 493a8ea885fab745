"""
Services package for Ingestion Orchestrator

Batch splitting, the pending queue and the submission status store.
"""

from .batch_splitter import split_into_batches, validate_item_ids, DEFAULT_BATCH_SIZE, MAX_BATCH_SIZE
from .queue_manager import QueueManager
from .status_store import StatusStore

__all__ = [
    "split_into_batches",
    "validate_item_ids",
    "DEFAULT_BATCH_SIZE",
    "MAX_BATCH_SIZE",
    "QueueManager",
    "StatusStore"
]
