"""
Data models for Ingestion Orchestrator

Batches, submissions, their status enumerations and transition rules.
"""

# Batch models
from .batch import (
    Batch,
    BatchStatus,
    ItemId,
    MAX_BATCH_SIZE,
    Priority,
    BATCH_STATUS_TRANSITIONS,
    can_transition_to,
    get_valid_transitions,
    epoch_millis
)

# Submission models
from .submission import (
    Submission,
    SubmissionStatus,
    derive_submission_status
)

__all__ = [
    # Batch models
    "Batch",
    "BatchStatus",
    "ItemId",
    "MAX_BATCH_SIZE",
    "Priority",
    "BATCH_STATUS_TRANSITIONS",
    "can_transition_to",
    "get_valid_transitions",
    "epoch_millis",

    # Submission models
    "Submission",
    "SubmissionStatus",
    "derive_submission_status"
]
