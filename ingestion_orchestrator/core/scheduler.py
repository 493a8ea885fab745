"""
BatchScheduler: the single-flight, rate-limited batch processing loop

Owns the pending queue and the status store. Submissions are split into
batches, queued by priority, and drained one batch at a time by a single
asyncio task that pauses for a fixed cooldown between batches.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from ..models.batch import Batch, BatchStatus, ItemId, Priority, epoch_millis
from ..models.submission import Submission
from ..fetchers import BaseFetcher, create_fetcher
from ..services.batch_splitter import DEFAULT_BATCH_SIZE, MAX_BATCH_SIZE, split_into_batches
from ..services.queue_manager import QueueManager
from ..services.status_store import StatusStore
from ..utils.config import Settings
from ..utils.logger import get_logger, set_log_context, LoggerContext
from .exceptions import (
    IngestionOrchestratorError,
    InvalidInputError,
    FetchTimeoutError,
    SchedulerError,
    error_registry
)

DEFAULT_COOLDOWN_SECONDS = 5.0


@dataclass
class RetryPolicy:
    """Per-item fetch retry behaviour. One attempt means no retries."""
    max_attempts: int = 1
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0

    def delay_for(self, failed_attempts: int) -> float:
        """Backoff before the next attempt after ``failed_attempts`` failures."""
        delay = self.initial_delay * (self.exponential_base ** (failed_attempts - 1))
        return min(delay, self.max_delay)


class BatchScheduler:
    """
    Schedules batches against the external resource.

    Entry points:
    - ``submit``: split ids into batches, record the submission, queue the
      batches and start the drain loop if it is idle
    - ``get_submission`` / ``list_submissions``: read the status store
    - ``wait_until_idle`` / ``stop``: lifecycle helpers

    At most one drain task exists at a time and it processes one batch at a
    time, so at most one batch is ever in flight.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        retry_policy: Optional[RetryPolicy] = None,
        fetch_timeout: Optional[float] = None
    ):
        """
        Initialize the scheduler.

        Args:
            fetcher: Collaborator that fetches one item from the external resource
            cooldown_seconds: Pause between the end of one batch and the dispatch of the next
            batch_size: Maximum item identifiers per batch (1 to 3)
            retry_policy: Per-item retry policy; defaults to a single attempt
            fetch_timeout: Optional per-attempt deadline in seconds; None waits forever
        """
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must not be negative")
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        if fetch_timeout is not None and fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")

        self.fetcher = fetcher
        self.cooldown_seconds = cooldown_seconds
        self.batch_size = batch_size
        self.retry_policy = retry_policy or RetryPolicy()
        self.fetch_timeout = fetch_timeout

        self._queue = QueueManager()
        self._store = StatusStore()

        # Drain loop state
        self._drain_task: Optional[asyncio.Task] = None
        self._is_draining = False
        self._is_stopped = False
        self._active_batch_id: Optional[str] = None
        self._last_completed_at: Optional[float] = None
        self._last_created_time = 0

        # Counters
        self._batches_completed = 0
        self._batches_failed = 0

        self.logger = get_logger(__name__)
        set_log_context(self.logger, component="scheduler")

    @classmethod
    def from_settings(cls, settings: Settings, fetcher: Optional[BaseFetcher] = None) -> "BatchScheduler":
        """Build a scheduler (and, unless given, its fetcher) from settings."""
        if fetcher is None:
            fetcher = create_fetcher(settings)

        return cls(
            fetcher,
            cooldown_seconds=settings.cooldown_seconds,
            batch_size=settings.batch_size,
            retry_policy=RetryPolicy(
                max_attempts=settings.fetch_max_attempts,
                initial_delay=settings.fetch_retry_delay
            ),
            fetch_timeout=settings.fetch_timeout_seconds
        )

    async def start(self):
        """Initialize the fetcher."""
        self.logger.info("Starting BatchScheduler", extra={
            "fetcher": self.fetcher.fetcher_name,
            "cooldown_seconds": self.cooldown_seconds,
            "batch_size": self.batch_size
        })
        await self.fetcher.initialize()

    async def stop(self):
        """Stop the drain loop and release the fetcher. Pending batches are abandoned."""
        self.logger.info("Stopping BatchScheduler", extra={"queue_size": len(self._queue)})
        self._is_stopped = True

        task = self._drain_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        # A task cancelled before its first step never reaches the loop's cleanup
        self._is_draining = False
        self._active_batch_id = None
        await self.fetcher.shutdown()

    # Submission interface
    async def submit(self, ids: Any, priority: Union[Priority, str, None] = None) -> str:
        """
        Accept a new submission.

        Args:
            ids: Ordered, non-empty list of item identifiers
            priority: HIGH, MEDIUM or LOW; MEDIUM when omitted

        Returns:
            The new submission id

        Raises:
            InvalidInputError: If ids or priority are malformed
            SchedulerError: If the scheduler has been stopped
        """
        if self._is_stopped:
            raise SchedulerError("scheduler is stopped")

        priority = self._parse_priority(priority)
        created_time = self._next_created_time()
        batches = split_into_batches(ids, priority, created_time, self.batch_size)

        submission = Submission(
            submission_id=str(uuid4()),
            priority=priority,
            created_time=created_time,
            batches=list(batches)
        )
        self._store.add_submission(submission)
        queue_size = self._queue.enqueue_batches(batches)

        self.logger.info("Submission accepted", extra={
            "submission_id": submission.submission_id,
            "priority": priority.value,
            "item_count": submission.item_count,
            "batch_count": len(batches),
            "queue_size": queue_size
        })

        self._ensure_draining()
        return submission.submission_id

    async def get_submission(self, submission_id: str) -> Dict[str, Any]:
        """
        Get the full record of a submission.

        Raises:
            SubmissionNotFoundError: If the id is unknown
        """
        return self._store.get_submission(submission_id).to_dict()

    async def list_submissions(self, status_filter: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
        """List submission records, oldest first."""
        return [s.to_dict() for s in self._store.list_submissions(status_filter, limit)]

    async def get_statistics(self) -> Dict[str, Any]:
        """Get scheduler, queue and store statistics."""
        return {
            "is_draining": self._is_draining,
            "active_batch_id": self._active_batch_id,
            "cooldown_seconds": self.cooldown_seconds,
            "batch_size": self.batch_size,
            "fetcher": self.fetcher.fetcher_name,
            "batches_completed": self._batches_completed,
            "batches_failed": self._batches_failed,
            "queue": self._queue.get_queue_statistics(),
            "submissions": self._store.get_statistics(),
            "errors": error_registry.get_error_statistics()
        }

    def pending_batch_ids(self) -> List[str]:
        """Batch ids still queued, in dispatch order."""
        return self._queue.pending_batch_ids()

    def is_draining(self) -> bool:
        return self._is_draining

    async def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the drain loop has emptied the queue.

        Returns:
            True if idle, False if ``timeout`` elapsed first
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None

        while self._drain_task is not None and not self._drain_task.done():
            remaining = deadline - loop.time() if deadline is not None else None
            if remaining is not None and remaining <= 0:
                return False
            await asyncio.wait({self._drain_task}, timeout=remaining)

        return True

    # Drain loop
    def _ensure_draining(self):
        """Start the drain task unless one is already running."""
        if self._is_draining or self._queue.is_empty():
            return

        # Set before the task first runs so a second submit cannot start another loop
        self._is_draining = True
        self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self):
        self.logger.info("Scheduler loop started", extra={"queue_size": len(self._queue)})
        try:
            while not self._queue.is_empty():
                await self._wait_for_cooldown()
                batch = self._queue.dequeue()
                await self._process_batch(batch)
                self._last_completed_at = asyncio.get_running_loop().time()
        finally:
            self._is_draining = False
            self._active_batch_id = None
            self.logger.info("Scheduler loop idle", extra={
                "batches_completed": self._batches_completed,
                "batches_failed": self._batches_failed
            })

    async def _wait_for_cooldown(self):
        """Sleep until a full cooldown has passed since the last batch finished."""
        if self._last_completed_at is None:
            return

        elapsed = asyncio.get_running_loop().time() - self._last_completed_at
        remaining = self.cooldown_seconds - elapsed
        if remaining > 0:
            await asyncio.sleep(remaining)

    async def _process_batch(self, batch: Batch):
        """Trigger a batch, fetch all of its items concurrently, and record the outcome."""
        with LoggerContext(self.logger, batch_id=batch.batch_id):
            current = batch
            try:
                current = batch.transition_to(BatchStatus.TRIGGERED)
                self._active_batch_id = current.batch_id
                self._store.update_batch(current)

                self.logger.info("Batch dispatched", extra={
                    "priority": current.priority.value,
                    "item_ids": list(current.ids)
                })

                outcomes = await asyncio.gather(
                    *(self._fetch_item(item_id) for item_id in current.ids),
                    return_exceptions=True
                )
                failures = [
                    (item_id, outcome) for item_id, outcome in zip(current.ids, outcomes)
                    if isinstance(outcome, BaseException)
                ]

                if failures:
                    current = self._finish_failed(current, failures)
                else:
                    current = current.transition_to(BatchStatus.DONE)
                    self._batches_completed += 1
                    self.logger.info("Batch completed")

                self._store.update_batch(current)

            except Exception as e:
                self.logger.error("Unexpected error while processing batch", exc_info=True)
                if current.status == BatchStatus.TRIGGERED:
                    current = current.transition_to(BatchStatus.FAILED, error_message=f"Internal error: {e}")
                    self._batches_failed += 1
                    self._store.update_batch(current)
            finally:
                self._active_batch_id = None

    def _finish_failed(self, batch: Batch, failures: List[tuple]) -> Batch:
        for _, error in failures:
            if isinstance(error, IngestionOrchestratorError):
                error_registry.record_error(error)

        failed_ids = tuple(item_id for item_id, _ in failures)
        message = "; ".join(str(error) or error.__class__.__name__ for _, error in failures)

        self._batches_failed += 1
        self.logger.warning("Batch failed", extra={
            "failed_ids": list(failed_ids),
            "error_message": message
        })

        return batch.transition_to(BatchStatus.FAILED, error_message=message, failed_ids=failed_ids)

    async def _fetch_item(self, item_id: ItemId) -> Dict[str, Any]:
        """Fetch one item, applying the per-attempt timeout and retry policy."""
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._fetch_once(item_id)
            except Exception as e:
                if attempt >= self.retry_policy.max_attempts:
                    raise

                delay = self.retry_policy.delay_for(attempt)
                self.logger.warning("Fetch failed, retrying", extra={
                    "item_id": item_id,
                    "attempt": attempt,
                    "max_attempts": self.retry_policy.max_attempts,
                    "retry_in_seconds": delay,
                    "error": str(e)
                })
                await asyncio.sleep(delay)

    async def _fetch_once(self, item_id: ItemId) -> Dict[str, Any]:
        if self.fetch_timeout is None:
            return await self.fetcher.fetch(item_id)

        try:
            return await asyncio.wait_for(self.fetcher.fetch(item_id), self.fetch_timeout)
        except asyncio.TimeoutError:
            raise FetchTimeoutError(item_id, self.fetch_timeout) from None

    # Helpers
    def _parse_priority(self, priority: Union[Priority, str, None]) -> Priority:
        if priority is None:
            return Priority.MEDIUM
        if isinstance(priority, Priority):
            return priority
        if isinstance(priority, str):
            try:
                return Priority(priority.upper())
            except ValueError:
                pass
        raise InvalidInputError("priority", "must be one of HIGH, MEDIUM, LOW", priority)

    def _next_created_time(self) -> int:
        """Wall-clock epoch ms, clamped so it never goes backwards."""
        self._last_created_time = max(epoch_millis(), self._last_created_time)
        return self._last_created_time
