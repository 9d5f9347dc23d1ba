# storefront/services/live_registry.py
"""
Process-local registry of live order-event subscribers (ops dashboard streams).

Created and closed with the app lifespan and injected where needed, never
reached as a module global. Each subscriber owns a bounded queue; broadcast
never blocks, a full queue just misses that event.
"""
import queue
import threading
from typing import Any, Optional

from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_CLOSED = object()


class Subscription:
    def __init__(self, max_queue: int):
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue)
        self.closed = False

    def offer(self, message: Any) -> bool:
        try:
            self._queue.put_nowait(message)
            return True
        except queue.Full:
            return False

    def close(self):
        self.closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except queue.Full:
            pass

    def get(self, timeout: float | None = None) -> Optional[Any]:
        """Next message, or None on timeout or once closed."""
        if self.closed and self._queue.empty():
            return None
        try:
            message = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if message is _CLOSED:
            self.closed = True
            return None
        return message


class SubscriberRegistry:
    def __init__(self, max_queue: int = 100):
        self.max_queue = max_queue
        self._subscribers: set[Subscription] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self.max_queue)
        with self._lock:
            if self._closed:
                subscription.close()
            else:
                self._subscribers.add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription):
        with self._lock:
            self._subscribers.discard(subscription)

    def broadcast(self, message: Any) -> int:
        with self._lock:
            if self._closed:
                return 0
            targets = list(self._subscribers)

        delivered = 0
        for subscription in targets:
            if subscription.offer(message):
                delivered += 1
            else:
                logger.warning("Live subscriber queue full, event dropped for that subscriber")
        return delivered

    def close(self):
        with self._lock:
            self._closed = True
            targets = list(self._subscribers)
            self._subscribers.clear()
        for subscription in targets:
            subscription.close()
        logger.info(f"Subscriber registry closed ({len(targets)} subscribers)")
