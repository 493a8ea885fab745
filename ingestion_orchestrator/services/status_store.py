"""
StatusStore service for Ingestion Orchestrator

In-memory mapping from submission id to submission record, with a
batch id index so that batch updates find their owner directly.
"""

from typing import Dict, List, Optional, Any

from ..models.batch import Batch
from ..models.submission import Submission, SubmissionStatus
from ..utils.logger import get_logger, set_log_context
from ..core.exceptions import SubmissionNotFoundError


class StatusStore:
    """
    Process-lifetime store of submissions and their batches.

    Submissions are inserted whole and never removed. The only mutation after
    insertion is ``update_batch``, which swaps one batch entry in place.
    """

    def __init__(self):
        self._submissions: Dict[str, Submission] = {}
        self._batch_owners: Dict[str, str] = {}

        self.logger = get_logger(__name__)
        set_log_context(self.logger, component="status_store")

    def __len__(self) -> int:
        return len(self._submissions)

    def __contains__(self, submission_id: str) -> bool:
        return submission_id in self._submissions

    def add_submission(self, submission: Submission):
        """Insert a new submission together with all of its batches."""
        if submission.submission_id in self._submissions:
            raise ValueError(f"Submission {submission.submission_id} already stored")

        self._submissions[submission.submission_id] = submission
        for batch in submission.batches:
            self._batch_owners[batch.batch_id] = submission.submission_id

    def get_submission(self, submission_id: str) -> Submission:
        """
        Look up a submission by exact id.

        Raises:
            SubmissionNotFoundError: If the id is unknown
        """
        submission = self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        return submission

    def update_batch(self, batch: Batch) -> Optional[SubmissionStatus]:
        """
        Store a new version of a batch in its owning submission.

        Returns:
            The owning submission's recomputed status, or None when no
            submission owns the batch (logged, not raised)
        """
        submission_id = self._batch_owners.get(batch.batch_id)
        submission = self._submissions.get(submission_id) if submission_id else None

        if submission is None or not submission.replace_batch(batch):
            self.logger.warning("Batch update for unknown batch ignored", extra={
                "batch_id": batch.batch_id,
                "batch_status": batch.status.value
            })
            return None

        return submission.status

    def list_submissions(self, status_filter: Optional[str] = None, limit: int = 100) -> List[Submission]:
        """List submissions in insertion order, optionally filtered by status value."""
        submissions = list(self._submissions.values())
        if status_filter:
            submissions = [s for s in submissions if s.status.value == status_filter]
        return submissions[:limit]

    def get_statistics(self) -> Dict[str, Any]:
        """Count submissions per aggregate status."""
        by_status: Dict[str, int] = {}
        for submission in self._submissions.values():
            status = submission.status.value
            by_status[status] = by_status.get(status, 0) + 1

        return {
            "total_submissions": len(self._submissions),
            "total_batches": len(self._batch_owners),
            "submissions_by_status": by_status
        }
