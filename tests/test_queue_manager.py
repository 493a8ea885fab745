import pytest

from ingestion_orchestrator.core.exceptions import QueueError
from ingestion_orchestrator.models import BatchStatus, Priority
from ingestion_orchestrator.services.batch_splitter import split_into_batches
from ingestion_orchestrator.services.queue_manager import QueueManager


@pytest.fixture
def queue():
    return QueueManager()


def test_empty_queue_dequeues_none(queue):
    assert queue.is_empty()
    assert queue.dequeue() is None
    assert queue.peek() is None


def test_high_priority_jumps_ahead_of_earlier_low(queue):
    low = split_into_batches(["l1", "l2"], Priority.LOW, created_time=1)
    high = split_into_batches(["h1"], Priority.HIGH, created_time=2)

    queue.enqueue_batches(low)
    assert queue.enqueue_batches(high) == 2

    assert queue.dequeue().priority == Priority.HIGH
    assert queue.dequeue().priority == Priority.LOW


def test_same_priority_orders_by_creation_time(queue):
    later = split_into_batches(["later"], Priority.MEDIUM, created_time=200)
    earlier = split_into_batches(["earlier"], Priority.MEDIUM, created_time=100)

    queue.enqueue_batches(later)
    queue.enqueue_batches(earlier)

    assert [queue.dequeue().ids for _ in range(2)] == [("earlier",), ("later",)]


def test_ties_keep_insertion_order(queue):
    first = split_into_batches(list(range(9)), Priority.MEDIUM, created_time=5)
    second = split_into_batches(["x", "y"], Priority.MEDIUM, created_time=5)

    queue.enqueue_batches(first)
    queue.enqueue_batches(second)

    expected = [batch.batch_id for batch in first + second]
    assert queue.pending_batch_ids() == expected


def test_mixed_priorities_drain_in_rank_then_time_order(queue):
    queue.enqueue_batches(split_into_batches(["m"], Priority.MEDIUM, created_time=1))
    queue.enqueue_batches(split_into_batches(["l"], Priority.LOW, created_time=0))
    queue.enqueue_batches(split_into_batches(["h2"], Priority.HIGH, created_time=3))
    queue.enqueue_batches(split_into_batches(["h1"], Priority.HIGH, created_time=2))

    order = []
    while not queue.is_empty():
        order.extend(queue.dequeue().ids)

    assert order == ["h1", "h2", "m", "l"]


def test_only_pending_batches_can_be_queued(queue):
    batch = split_into_batches(["a"])[0].transition_to(BatchStatus.TRIGGERED)

    with pytest.raises(QueueError) as excinfo:
        queue.enqueue_batches([batch])

    assert excinfo.value.details["operation"] == "enqueue"
    assert queue.is_empty()


def test_queue_statistics(queue):
    queue.enqueue_batches(split_into_batches(list(range(4)), Priority.HIGH, created_time=1))
    queue.enqueue_batches(split_into_batches(["z"], Priority.LOW, created_time=1))
    queue.dequeue()

    stats = queue.get_queue_statistics()

    assert stats == {
        "queue_size": 2,
        "pending_by_priority": {"HIGH": 1, "LOW": 1},
        "total_enqueued": 3,
        "total_dequeued": 1
    }
