"""
Purpose: Push-based change notification for ride / driver / forecast records.
What it does:
- ChangeDelta: one create/update/delete event for one record
- ChangeFeed.subscribe(collection, predicate) -> Subscription (explicitly cancellable)
- InMemoryChangeFeed: fan-out of published deltas to matching subscriptions

Consumers never poll the store; they iterate a Subscription.
A Subscription buffers deltas in its own queue so a slow consumer never blocks
the writer that published them.
"""

from __future__ import annotations

import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional

RIDES = "rides"
DRIVERS = "drivers"
FORECASTS = "forecasts"


class DeltaKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeDelta:
    collection: str
    kind: DeltaKind
    record_id: str
    record: Any = None


DeltaPredicate = Callable[[ChangeDelta], bool]

_CLOSED = object()


class Subscription:
    """
    A live stream of deltas. Iterate it, or call get(timeout) to poll the local buffer.
    close()/unsubscribe() stops delivery and ends any iteration in progress.
    """

    def __init__(self, feed: "ChangeFeed", collection: Optional[str] = None, predicate: Optional[DeltaPredicate] = None):
        self._feed = feed
        self.collection = collection
        self.predicate = predicate
        self._buffer: "queue.Queue[Any]" = queue.Queue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def matches(self, delta: ChangeDelta) -> bool:
        if self.collection is not None and delta.collection != self.collection:
            return False
        return self.predicate is None or bool(self.predicate(delta))

    def deliver(self, delta: ChangeDelta) -> None:
        if not self.closed:
            self._buffer.put(delta)

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeDelta]:
        """Next delta, or None on timeout / after close."""
        if self.closed and self._buffer.empty():
            return None
        try:
            item = self._buffer.get(timeout=timeout)
        except queue.Empty:
            return None
        return None if item is _CLOSED else item

    def drain(self) -> List[ChangeDelta]:
        """Everything buffered right now, without blocking."""
        items = []
        while True:
            try:
                item = self._buffer.get_nowait()
            except queue.Empty:
                return items
            if item is not _CLOSED:
                items.append(item)

    def __iter__(self) -> Iterator[ChangeDelta]:
        while True:
            item = self._buffer.get()
            if item is _CLOSED:
                return
            yield item

    def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        self._feed.unsubscribe(self)
        self._buffer.put(_CLOSED)

    unsubscribe = close

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ChangeFeed(ABC):
    @abstractmethod
    def subscribe(self, collection: Optional[str] = None, predicate: Optional[DeltaPredicate] = None) -> Subscription:
        raise NotImplementedError

    @abstractmethod
    def unsubscribe(self, subscription: Subscription) -> None:
        raise NotImplementedError


class InMemoryChangeFeed(ChangeFeed):
    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, collection: Optional[str] = None, predicate: Optional[DeltaPredicate] = None) -> Subscription:
        subscription = Subscription(self, collection, predicate)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, delta: ChangeDelta) -> int:
        """Deliver to every matching subscriber; returns how many received it."""
        with self._lock:
            targets = [subscription for subscription in self._subscriptions if subscription.matches(delta)]
        for subscription in targets:
            subscription.deliver(delta)
        return len(targets)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)
