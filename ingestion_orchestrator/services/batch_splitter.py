"""
Batch splitting for Ingestion Orchestrator

Divides an ordered list of item identifiers into contiguous, fixed-size
batches that all share the submission's priority and creation time.
"""

from typing import Any, Iterable, Iterator, List, Optional, Sequence
from uuid import uuid4

from ..models.batch import MAX_BATCH_SIZE, Batch, ItemId, Priority, epoch_millis
from ..core.exceptions import InvalidInputError

DEFAULT_BATCH_SIZE = 3


def validate_item_ids(ids: Any) -> List[ItemId]:
    """
    Check that ``ids`` is a non-empty list of string or integer identifiers.

    Raises:
        InvalidInputError: If ids are missing, not a list, empty, or contain
            anything other than strings and integers
    """
    if ids is None:
        raise InvalidInputError("ids", "is required")
    if not isinstance(ids, list):
        raise InvalidInputError("ids", "must be an array", ids)
    if not ids:
        raise InvalidInputError("ids", "must not be empty", ids)

    for position, item_id in enumerate(ids):
        # bool is an int subclass but never a valid identifier
        if isinstance(item_id, bool) or not isinstance(item_id, (str, int)):
            raise InvalidInputError(f"ids[{position}]", "must be a string or an integer", item_id)

    return list(ids)


def chunked(items: Iterable[ItemId], size: int) -> Iterator[List[ItemId]]:
    """Yield consecutive groups of at most ``size`` items, preserving order."""
    buf = []
    for item in items:
        buf.append(item)
        if len(buf) >= size:
            yield buf
            buf = []
    if buf:
        yield buf


def split_into_batches(
    ids: Any,
    priority: Priority = Priority.MEDIUM,
    created_time: Optional[int] = None,
    batch_size: int = DEFAULT_BATCH_SIZE
) -> List[Batch]:
    """
    Split item identifiers into NOT_STARTED batches.

    Args:
        ids: Ordered list of item identifiers
        priority: Priority inherited by every batch
        created_time: Shared creation timestamp (epoch ms); taken once here
            when not given so that all batches tie on it
        batch_size: Maximum number of identifiers per batch, at most ``MAX_BATCH_SIZE``

    Returns:
        Batches in input order; ``len(ids) / batch_size`` rounded up of them
    """
    if not 1 <= batch_size <= MAX_BATCH_SIZE:
        raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")

    item_ids: Sequence[ItemId] = validate_item_ids(ids)
    created_time = created_time if created_time is not None else epoch_millis()

    return [
        Batch(
            batch_id=str(uuid4()),
            ids=tuple(group),
            priority=priority,
            created_time=created_time
        )
        for group in chunked(item_ids, batch_size)
    ]
