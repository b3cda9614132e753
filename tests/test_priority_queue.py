import itertools
import threading
from datetime import timedelta

import pytest

from common.exceptions import ValidationError
from rides.models import RideStatus
from rides.priority import PriorityClass, precedes, priority_score
from rides.queue import PendingRideQueue
from conftest import REFERENCE_TIME, make_ride


def test_priority_weights():
    assert priority_score("emergency") == 100
    assert priority_score(PriorityClass.EXAM) == 60
    assert priority_score("normal") == 20
    assert priority_score("vip") == 20
    assert priority_score(None) == 20


def test_precedes_is_score_then_request_time():
    earlier = make_ride("a", "exam", REFERENCE_TIME)
    later = make_ride("b", "exam", REFERENCE_TIME + timedelta(minutes=1))
    urgent_late = make_ride("c", "emergency", REFERENCE_TIME + timedelta(hours=1))

    assert precedes(earlier, later)
    assert not precedes(later, earlier)
    assert precedes(urgent_late, earlier)
    assert not precedes(earlier, earlier)


@pytest.fixture
def emergency_exam_rides():
    return [
        make_ride("emergency-early", "emergency", REFERENCE_TIME),
        make_ride("emergency-late", "emergency", REFERENCE_TIME + timedelta(minutes=5)),
        make_ride("exam", "exam", REFERENCE_TIME - timedelta(minutes=30)),
    ]


def test_emergency_emergency_exam_in_any_arrival_order(emergency_exam_rides):
    for arrival_order in itertools.permutations(emergency_exam_rides):
        queue = PendingRideQueue()
        for ride in arrival_order:
            queue.push(ride)

        assert [ride.id for ride in queue.ranked()] == ["emergency-early", "emergency-late", "exam"]
        assert [queue.pop().id for _ in range(3)] == ["emergency-early", "emergency-late", "exam"]
        assert queue.pop() is None


def test_interleaved_insertions_keep_the_order():
    queue = PendingRideQueue()
    queue.push(make_ride("n1", "normal", REFERENCE_TIME))
    queue.push(make_ride("x1", "exam", REFERENCE_TIME + timedelta(minutes=2)))

    assert queue.pop().id == "x1"

    queue.push(make_ride("e1", "emergency", REFERENCE_TIME + timedelta(minutes=3)))
    queue.push(make_ride("n0", "normal", REFERENCE_TIME - timedelta(minutes=1)))

    assert [ride.id for ride in queue.ranked()] == ["e1", "n0", "n1"]
    assert queue.peek().id == "e1"
    assert len(queue) == 3


def test_remove_and_requeue():
    queue = PendingRideQueue()
    first = make_ride("first", "normal", REFERENCE_TIME)
    second = make_ride("second", "normal", REFERENCE_TIME + timedelta(seconds=1))
    queue.push(first)
    queue.push(second)

    assert queue.remove("first") is True
    assert queue.remove("first") is False
    assert "first" not in queue
    assert queue.peek().id == "second"

    assert queue.push(first) is True
    assert queue.push(first) is False
    assert queue.pop().id == "first"
    assert queue.stats().pending_count == 1


def test_heap_is_compacted_under_heavy_cancellation():
    queue = PendingRideQueue()
    for index in range(10):
        queue.push(make_ride(f"r{index}", "normal", REFERENCE_TIME + timedelta(seconds=index)))

    for index in range(9, 0, -1):
        queue.remove(f"r{index}")
        stats = queue.stats()
        assert stats.heap_size <= 2 * stats.pending_count

    assert queue.stats().heap_size == 1
    assert queue.pop().id == "r0"
    assert queue.stats().heap_size == 0


def test_only_pending_rides_can_be_queued():
    with pytest.raises(ValidationError):
        PendingRideQueue().push(make_ride("done", status=RideStatus.COMPLETED))


def test_concurrent_pops_never_hand_out_a_ride_twice():
    queue = PendingRideQueue()
    for index in range(200):
        queue.push(make_ride(f"r{index}", "normal", REFERENCE_TIME + timedelta(seconds=index)))

    taken = []
    lock = threading.Lock()

    def worker():
        while True:
            ride = queue.pop()
            if ride is None:
                return
            with lock:
                taken.append(ride.id)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(taken) == 200
    assert len(set(taken)) == 200
