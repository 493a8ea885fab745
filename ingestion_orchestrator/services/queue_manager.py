"""
QueueManager service for Ingestion Orchestrator

Holds pending batches in scheduling order: priority rank first, then
creation time.
"""

from typing import Dict, Iterable, List, Optional, Any

from ..models.batch import Batch, BatchStatus
from ..utils.logger import get_logger, set_log_context
from ..core.exceptions import QueueError


class QueueManager:
    """
    Priority-ordered list of pending batches.

    The list is fully re-sorted after every bulk insert. The sort is stable,
    so batches that tie on priority and creation time keep their insertion
    order. Only NOT_STARTED batches may be enqueued.
    """

    def __init__(self):
        self._pending: List[Batch] = []
        self._total_enqueued = 0
        self._total_dequeued = 0

        self.logger = get_logger(__name__)
        set_log_context(self.logger, component="queue_manager")

    def __len__(self) -> int:
        return len(self._pending)

    def is_empty(self) -> bool:
        return not self._pending

    def enqueue_batches(self, batches: Iterable[Batch]) -> int:
        """
        Append batches and restore scheduling order.

        Args:
            batches: Batches from one ingestion call

        Returns:
            Queue size after the insert
        """
        batches = list(batches)
        for batch in batches:
            if batch.status != BatchStatus.NOT_STARTED:
                raise QueueError(
                    "enqueue",
                    f"batch {batch.batch_id} is {batch.status.value}, only pending batches can be queued"
                )

        self._pending.extend(batches)
        self._pending.sort(key=lambda batch: batch.sort_key)
        self._total_enqueued += len(batches)

        self.logger.debug("Batches enqueued", extra={
            "enqueued": len(batches),
            "queue_size": len(self._pending)
        })

        return len(self._pending)

    def dequeue(self) -> Optional[Batch]:
        """
        Remove and return the front-most batch.

        Returns:
            Next batch or None if the queue is empty
        """
        if not self._pending:
            return None

        batch = self._pending.pop(0)
        self._total_dequeued += 1

        self.logger.debug("Batch dequeued", extra={
            "batch_id": batch.batch_id,
            "remaining_queue_size": len(self._pending)
        })

        return batch

    def peek(self) -> Optional[Batch]:
        """Return the front-most batch without removing it."""
        return self._pending[0] if self._pending else None

    def pending_batch_ids(self) -> List[str]:
        """Batch ids in the order they will be dispatched."""
        return [batch.batch_id for batch in self._pending]

    def get_queue_statistics(self) -> Dict[str, Any]:
        """Get queue statistics."""
        by_priority: Dict[str, int] = {}
        for batch in self._pending:
            by_priority[batch.priority.value] = by_priority.get(batch.priority.value, 0) + 1

        return {
            "queue_size": len(self._pending),
            "pending_by_priority": by_priority,
            "total_enqueued": self._total_enqueued,
            "total_dequeued": self._total_dequeued
        }
