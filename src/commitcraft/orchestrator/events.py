"""Progress event fan-out with bounded subscriber queues."""

import logging
import queue
import threading
from collections.abc import Callable, Iterator

from commitcraft.models.event_models import ProgressEvent

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256
_PUT_POLL_SECONDS = 0.05
_CLOSED = object()


class Subscription:
    """A bounded queue of ProgressEvents for one consumer.

    When the queue is full the publisher blocks until the consumer catches
    up, the subscription is closed, or the publisher's is_current check
    reports the event stale.
    """

    def __init__(self, bus: "EventBus", maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self._bus = bus
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, event: ProgressEvent, is_current: Callable[[], bool] | None = None) -> bool:
        """Block until the event is queued.

        Returns False if the subscription closes first, or if is_current
        returns False while the queue is still full.
        """
        while not self._closed.is_set():
            if is_current is not None and not is_current():
                return False
            try:
                self._queue.put(event, timeout=_PUT_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def get(self, timeout: float | None = None) -> ProgressEvent | None:
        """Next event, or None on timeout or once the subscription is closed."""
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            return None
        return item

    def drain(self) -> list[ProgressEvent]:
        """Return every event queued right now without blocking."""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return events
            if item is not _CLOSED:
                events.append(item)

    def until_terminal(self, timeout: float | None = None) -> Iterator[ProgressEvent]:
        """Yield events up to and including the next terminal one.

        Stops early if no event arrives within timeout seconds.
        """
        while True:
            event = self.get(timeout=timeout)
            if event is None:
                return
            yield event
            if event.is_terminal:
                return

    def __iter__(self) -> Iterator[ProgressEvent]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        self._bus.unsubscribe(self)
        try:
            self._queue.put_nowait(_CLOSED)
        except queue.Full:
            pass  # Readers stop on the next get() that finds the queue empty

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class EventBus:
    """Publishes each event to every open subscription, in order."""

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self.maxsize = maxsize
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, self.maxsize)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, event: ProgressEvent, is_current: Callable[[], bool] | None = None) -> int:
        """Deliver to all subscribers; returns how many received it.

        A subscriber with a full queue blocks delivery until it has room or
        is_current reports the event stale.
        """
        with self._lock:
            targets = list(self._subscriptions)
        delivered = sum(1 for subscription in targets if subscription.put(event, is_current))
        logger.debug("Published %s (seq=%d) to %d subscribers", event.stage.value, event.sequence, delivered)
        return delivered

    def close(self) -> None:
        with self._lock:
            targets = list(self._subscriptions)
        for subscription in targets:
            subscription.close()
