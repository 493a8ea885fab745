"""
Batch data models for Ingestion Orchestrator

Defines the batch record scheduled against the external resource, its
priority and status enumerations, and the allowed status transitions.
"""

import time
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple, Union
from dataclasses import dataclass, replace

from ..core.exceptions import InvalidTransitionError

# Item identifiers are opaque JSON scalars.
ItemId = Union[str, int]

# Upper bound on identifiers per batch
MAX_BATCH_SIZE = 3


def epoch_millis() -> int:
    """Current wall-clock time in integer epoch milliseconds."""
    return int(time.time() * 1000)


class Priority(Enum):
    """Submission priority enumeration."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Scheduling rank; lower ranks are served first."""
        return _PRIORITY_RANKS[self]


_PRIORITY_RANKS = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2
}


class BatchStatus(Enum):
    """Batch processing status enumeration."""
    NOT_STARTED = "yet_to_start"
    TRIGGERED = "triggered"
    DONE = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Batch:
    """
    A group of up to ``batch_size`` item identifiers processed as one unit.

    Records are immutable: a status change produces a new record through
    ``transition_to`` which the status store swaps into the owning submission.
    """

    # Primary identification
    batch_id: str
    ids: Tuple[ItemId, ...]

    # Scheduling
    priority: Priority
    created_time: int

    # Lifecycle
    status: BatchStatus = BatchStatus.NOT_STARTED
    triggered_time: Optional[int] = None
    completed_time: Optional[int] = None

    # Failure details
    failed_ids: Tuple[ItemId, ...] = ()
    error_message: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[int, int]:
        """Scheduling order: priority rank, then creation time."""
        return (self.priority.rank, self.created_time)

    @property
    def size(self) -> int:
        return len(self.ids)

    def is_terminal(self) -> bool:
        """Check if the batch has finished, successfully or not."""
        return self.status in (BatchStatus.DONE, BatchStatus.FAILED)

    def transition_to(
        self,
        target_status: BatchStatus,
        error_message: Optional[str] = None,
        failed_ids: Tuple[ItemId, ...] = (),
        timestamp: Optional[int] = None
    ) -> "Batch":
        """
        Return a copy of this batch advanced to ``target_status``.

        Raises:
            InvalidTransitionError: If the change would regress or skip a state
        """
        if not can_transition_to(self.status, target_status):
            raise InvalidTransitionError(self.batch_id, self.status.value, target_status.value)

        timestamp = timestamp if timestamp is not None else epoch_millis()

        if target_status == BatchStatus.TRIGGERED:
            return replace(self, status=target_status, triggered_time=timestamp)

        if target_status == BatchStatus.FAILED:
            return replace(
                self,
                status=target_status,
                completed_time=timestamp,
                failed_ids=tuple(failed_ids),
                error_message=error_message or "Batch processing failed"
            )

        return replace(self, status=target_status, completed_time=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Convert batch to dictionary."""
        return {
            "batch_id": self.batch_id,
            "ids": list(self.ids),
            "status": self.status.value,
            "priority": self.priority.value,
            "created_time": self.created_time,
            "triggered_time": self.triggered_time,
            "completed_time": self.completed_time,
            "failed_ids": list(self.failed_ids),
            "error_message": self.error_message
        }


# Batch status transition rules
BATCH_STATUS_TRANSITIONS = {
    BatchStatus.NOT_STARTED: [BatchStatus.TRIGGERED],
    BatchStatus.TRIGGERED: [BatchStatus.DONE, BatchStatus.FAILED],
    BatchStatus.DONE: [],  # Terminal state
    BatchStatus.FAILED: []  # Terminal state
}


def can_transition_to(current_status: BatchStatus, target_status: BatchStatus) -> bool:
    """Check if a batch can transition from current status to target status."""
    return target_status in BATCH_STATUS_TRANSITIONS.get(current_status, [])


def get_valid_transitions(current_status: BatchStatus) -> List[BatchStatus]:
    """Get list of valid status transitions from current status."""
    return BATCH_STATUS_TRANSITIONS.get(current_status, [])
