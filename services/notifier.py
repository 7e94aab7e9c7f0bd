"""
Status notifier - fans order events out to customer and staff views

Events are first written to the Order_Events outbox inside the transaction
that changed the order, then published here after commit. Live delivery is
best effort; a subscriber that missed something recovers with replay(),
which also serves subscribers living in other processes.
"""
import logging
import queue
import threading
from typing import List, Optional, Iterator

from models.events import OrderEvent
from database.repository import EventRepository

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Live event feed for one observer; customer_id None means all orders"""

    def __init__(self, notifier: "StatusNotifier", customer_id: Optional[str], maxsize: int):
        self.customer_id = customer_id
        self._notifier = notifier
        self._queue: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self.closed = False
        self.dropped = 0

    def matches(self, event: OrderEvent) -> bool:
        return self.customer_id is None or event.customer_id == self.customer_id

    def deliver(self, event: OrderEvent) -> None:
        # Never blocks the publisher: a full queue loses its oldest event
        while True:
            try:
                self._queue.put_nowait(event)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self.dropped += 1
                except queue.Empty:
                    pass

    def get(self, timeout: Optional[float] = None) -> Optional[OrderEvent]:
        """Next event, or None on timeout or once closed"""
        if self.closed and self._queue.empty():
            return None
        try:
            event = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        return None if event is _CLOSED else event

    def drain(self) -> List[OrderEvent]:
        events = []
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return events
            if event is not _CLOSED:
                events.append(event)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._notifier.unsubscribe(self)
        # Wakes up a consumer blocked in __iter__
        self.deliver(_CLOSED)

    def __iter__(self) -> Iterator[OrderEvent]:
        while not self.closed:
            event = self._queue.get()
            if event is _CLOSED:
                return
            yield event

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class StatusNotifier:
    # Publish / subscribe for order events

    def __init__(self, event_repository: EventRepository, queue_size: int = 100):
        self.event_repo = event_repository
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []

    def subscribe(self, customer_id: Optional[str] = None) -> Subscription:
        subscription = Subscription(self, customer_id, self.queue_size)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed to order events (customer=%s)", customer_id or "*")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, event: OrderEvent) -> int:
        """Deliver a committed event to every matching subscriber; returns the count"""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]
        for subscription in targets:
            subscription.deliver(event)
        logger.debug("Order %s %s -> %s delivered to %d subscriber(s)",
                     event.order_id, event.kind.value, event.status, len(targets))
        return len(targets)

    def replay(self, after_event_id: int = 0, customer_id: Optional[str] = None,
               limit: int = 500) -> List[OrderEvent]:
        """Committed events newer than after_event_id, oldest first"""
        return self.event_repo.list_after(after_event_id, customer_id, limit)
