"""
Exception classes for Ingestion Orchestrator

Provides the hierarchy of exceptions raised by the batch scheduler, its
collaborators and the request boundary.
"""

from typing import Optional, Dict, Any


class IngestionOrchestratorError(Exception):
    """Base exception for all ingestion orchestrator errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details
        }


class InvalidInputError(IngestionOrchestratorError):
    """Raised when a submit request is malformed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Invalid request: {field} {message}",
            error_code="INVALID_INPUT",
            details={"field": field, "value": repr(value) if value is not None else None}
        )


class SubmissionNotFoundError(IngestionOrchestratorError):
    """Raised when a requested submission cannot be found."""

    def __init__(self, submission_id: str):
        super().__init__(
            f"Submission {submission_id} not found",
            error_code="NOT_FOUND",
            details={"submission_id": submission_id}
        )


class FetchError(IngestionOrchestratorError):
    """Raised by a fetcher when an item cannot be fetched from the external resource."""

    def __init__(self, item_id: Any, message: str, status_code: Optional[int] = None):
        super().__init__(
            f"Fetch of item {item_id!r} failed: {message}",
            error_code="FETCH_ERROR",
            details={"item_id": item_id, "status_code": status_code}
        )
        self.item_id = item_id


class FetchTimeoutError(FetchError):
    """Raised when a single fetch exceeds the configured deadline."""

    def __init__(self, item_id: Any, timeout_seconds: float):
        super().__init__(item_id, f"timed out after {timeout_seconds} seconds")
        self.error_code = "FETCH_TIMEOUT"
        self.details["timeout_seconds"] = timeout_seconds


class InvalidTransitionError(IngestionOrchestratorError):
    """Raised when a batch status change would regress or skip a state."""

    def __init__(self, batch_id: str, current_status: str, target_status: str):
        super().__init__(
            f"Batch {batch_id} cannot move from {current_status} to {target_status}",
            error_code="INVALID_TRANSITION",
            details={"batch_id": batch_id, "current_status": current_status, "target_status": target_status}
        )


class QueueError(IngestionOrchestratorError):
    """Raised when queue operations fail."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            f"Queue operation '{operation}' failed: {message}",
            error_code="QUEUE_ERROR",
            details={"operation": operation}
        )


class ConfigurationError(IngestionOrchestratorError):
    """Raised when there's an error in configuration."""

    def __init__(self, config_key: str, message: str):
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            error_code="CONFIGURATION_ERROR",
            details={"config_key": config_key}
        )


class SchedulerError(IngestionOrchestratorError):
    """Raised when scheduler-level operations fail."""

    def __init__(self, message: str):
        super().__init__(
            f"Scheduler error: {message}",
            error_code="SCHEDULER_ERROR"
        )


# Global error registry for tracking patterns
class ErrorRegistry:
    """Registry for tracking and analyzing errors."""

    def __init__(self):
        self.error_counts = {}

    def record_error(self, error: IngestionOrchestratorError):
        """Record an error for analysis."""
        error_type = error.__class__.__name__
        self.error_counts[error_type] = self.error_counts.get(error_type, 0) + 1

    def reset(self):
        """Forget all recorded errors."""
        self.error_counts.clear()

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get error statistics for monitoring."""
        return {
            "total_errors": sum(self.error_counts.values()),
            "error_counts": dict(self.error_counts),
            "most_common_error": max(self.error_counts.items(), key=lambda x: x[1])[0] if self.error_counts else None
        }


# Global error registry instance
error_registry = ErrorRegistry()
