"""
Purpose: The pending-ride queue, ordered by priority.
What it does:
- Owns the in-memory ranked view of every ride currently `pending`.

Provides operations:
   - push(ride)        new submission arrives
   - remove(ride_id)   ride assigned elsewhere / cancelled
   - peek() / pop()    the dispatcher takes the head
   - ranked()          snapshot for dashboards

Ordering: priority_score descending, then request_time ascending
(see rides/priority.py). Backed by a binary heap, O(log n) per insertion.

Rule: The queue only orders rides. It never changes a ride's status; the state
machine does that, and the queue is told about it.
"""

from __future__ import annotations

import heapq
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Tuple

from common.exceptions import ValidationError
from .models import RideRequest, RideStatus
from .priority import rank_key


@dataclass
class QueueStats:
    pending_count: int
    heap_size: int
    now: datetime = field(default_factory=datetime.now)


# heap entry: (-priority_score, request_time, arrival_seq, ride_id)
_HeapEntry = Tuple[int, datetime, int, str]


@dataclass
class PendingRideQueue:
    """
    Thread-safe priority queue of pending rides.

    Removal is lazy: the live entry for a ride is tracked in `_live`, and stale heap
    entries are discarded when they surface at the top, or all at once when they
    outnumber the live ones. Each public call holds the lock only for its own
    duration, so a dispatcher can read/peek while submissions and cancellations
    keep arriving; only pop() decides ownership of the head.
    """
    _heap: List[_HeapEntry] = field(default_factory=list)
    _live: Dict[str, Tuple[int, RideRequest]] = field(default_factory=dict)  # ride_id -> (seq, ride)
    _sequence: Iterator[int] = field(default_factory=itertools.count, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    # --- Public API ---

    def push(self, ride: RideRequest) -> bool:
        """
        Add a pending ride. Returns False if it is already queued (idempotent).
        """
        if ride.status != RideStatus.PENDING:
            raise ValidationError(f"Only pending rides can be queued; {ride.id} is {ride.status.value}")

        with self._lock:
            if ride.id in self._live:
                return False
            seq = next(self._sequence)
            score_key, request_time = rank_key(ride)
            heapq.heappush(self._heap, (score_key, request_time, seq, ride.id))
            self._live[ride.id] = (seq, ride)
            return True

    def remove(self, ride_id: str) -> bool:
        """Drop a ride from the queue. Returns False if it was not queued."""
        with self._lock:
            removed = self._live.pop(ride_id, None) is not None
            if len(self._heap) > 2 * len(self._live):
                self._compact()
            return removed

    def peek(self) -> Optional[RideRequest]:
        with self._lock:
            self._discard_stale_head()
            if not self._heap:
                return None
            return self._live[self._heap[0][3]][1]

    def pop(self) -> Optional[RideRequest]:
        """
        Atomically take the highest-ranked ride; None when nothing is pending.
        """
        with self._lock:
            self._discard_stale_head()
            if not self._heap:
                return None
            _, _, _, ride_id = heapq.heappop(self._heap)
            _, ride = self._live.pop(ride_id)
            return ride

    def ranked(self) -> List[RideRequest]:
        """Snapshot of the pending set in dispatch order."""
        with self._lock:
            entries = sorted(
                (rank_key(ride) + (seq,), ride) for seq, ride in self._live.values()
            )
        return [ride for _, ride in entries]

    def get(self, ride_id: str) -> Optional[RideRequest]:
        with self._lock:
            entry = self._live.get(ride_id)
        return entry[1] if entry else None

    def stats(self) -> QueueStats:
        with self._lock:
            return QueueStats(pending_count=len(self._live), heap_size=len(self._heap))

    def __len__(self) -> int:
        with self._lock:
            return len(self._live)

    def __contains__(self, ride_id: str) -> bool:
        with self._lock:
            return ride_id in self._live

    # --- Internal helpers (caller holds the lock) ---

    def _discard_stale_head(self) -> None:
        while self._heap and not self._is_live(self._heap[0]):
            heapq.heappop(self._heap)

    def _compact(self) -> None:
        """Rebuild the heap from live entries once stale ones outnumber them."""
        self._heap = [entry for entry in self._heap if self._is_live(entry)]
        heapq.heapify(self._heap)

    def _is_live(self, entry: _HeapEntry) -> bool:
        live = self._live.get(entry[3])
        return live is not None and live[0] == entry[2]
