"""
Submission data models for Ingestion Orchestrator

A submission is one client request: an ordered list of batches plus an
aggregate status that is always derived from those batches.
"""

from enum import Enum
from typing import Dict, Any, Iterable, List
from dataclasses import dataclass

from .batch import Batch, BatchStatus, Priority


class SubmissionStatus(Enum):
    """Aggregate submission status enumeration."""
    NOT_STARTED = "yet_to_start"
    IN_PROGRESS = "triggered"
    DONE = "completed"
    FAILED = "failed"


def derive_submission_status(batch_statuses: Iterable[BatchStatus]) -> SubmissionStatus:
    """
    Reconcile batch statuses into the submission status.

    DONE when every batch is DONE, FAILED when every batch is terminal and at
    least one FAILED, IN_PROGRESS when some batch is TRIGGERED, otherwise
    NOT_STARTED.
    """
    statuses = list(batch_statuses)
    terminal = (BatchStatus.DONE, BatchStatus.FAILED)

    if all(status == BatchStatus.DONE for status in statuses):
        return SubmissionStatus.DONE
    if all(status in terminal for status in statuses):
        return SubmissionStatus.FAILED
    if any(status == BatchStatus.TRIGGERED for status in statuses):
        return SubmissionStatus.IN_PROGRESS
    return SubmissionStatus.NOT_STARTED


@dataclass
class Submission:
    """Submission record held by the status store."""

    submission_id: str
    priority: Priority
    created_time: int
    batches: List[Batch]

    @property
    def status(self) -> SubmissionStatus:
        return derive_submission_status(batch.status for batch in self.batches)

    @property
    def item_count(self) -> int:
        return sum(batch.size for batch in self.batches)

    def replace_batch(self, batch: Batch) -> bool:
        """
        Swap the stored entry for ``batch`` in place.

        Returns:
            True if the batch belongs to this submission
        """
        for index, existing in enumerate(self.batches):
            if existing.batch_id == batch.batch_id:
                self.batches[index] = batch
                return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Convert submission to dictionary."""
        return {
            "submission_id": self.submission_id,
            "status": self.status.value,
            "priority": self.priority.value,
            "created_time": self.created_time,
            "batches": [batch.to_dict() for batch in self.batches]
        }
