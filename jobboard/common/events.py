"""
Single-threaded event queue and observer subscriptions.

Session changes, route changes and fetch completions are delivered through
an EventQueue so that a notification raised while another one is being
handled is queued behind it instead of interleaving with it.

Usage:
    queue = EventQueue()
    signal = Signal(queue)
    subscription = signal.subscribe(lambda session: print(session))
    signal.emit(session)
    subscription.unsubscribe()
"""

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Generic, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventQueue:
    """
    FIFO queue of callbacks, drained by whichever caller posted first.

    A callback posted from inside another callback runs after the current
    one returns. Posts from other threads are appended and drained by the
    thread that is already draining.
    """

    def __init__(self):
        self._pending: Deque[Tuple[Callable[..., Any], Tuple[Any, ...]]] = deque()
        self._lock = threading.Lock()
        self._draining = False

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        """Queue a callback and drain the queue unless a drain is in progress."""
        with self._lock:
            self._pending.append((callback, args))
            if self._draining:
                return
            self._draining = True
        self._drain()

    def _drain(self) -> None:
        while True:
            with self._lock:
                if not self._pending:
                    self._draining = False
                    return
                callback, args = self._pending.popleft()
            try:
                callback(*args)
            except Exception:
                # One failing listener must not stall the rest of the queue
                logger.exception(f"Event handler {callback!r} failed")

    @property
    def pending(self) -> int:
        """Number of callbacks waiting to run."""
        with self._lock:
            return len(self._pending)


class Subscription:
    """Handle returned by Signal.subscribe(); unsubscribe() is idempotent."""

    def __init__(self, signal: "Signal", listener: Callable[[Any], Any]):
        self._signal: Optional[Signal] = signal
        self.listener = listener

    @property
    def active(self) -> bool:
        return self._signal is not None

    def unsubscribe(self) -> None:
        """Stop receiving notifications. Safe to call more than once."""
        if self._signal is not None:
            self._signal._remove(self)
            self._signal = None


class Signal(Generic[T]):
    """
    Observable value stream.

    Listeners are invoked through the shared EventQueue, in subscription
    order, with the emitted value. A listener unsubscribed before its turn
    in the queue is not called.
    """

    def __init__(self, queue: Optional[EventQueue] = None):
        self._queue = queue or EventQueue()
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Callable[[T], Any]) -> Subscription:
        subscription = Subscription(self, listener)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def emit(self, value: T) -> None:
        """Deliver value to every current listener via the event queue."""
        with self._lock:
            targets = list(self._subscriptions)
        for subscription in targets:
            self._queue.post(self._deliver, subscription, value)

    @staticmethod
    def _deliver(subscription: Subscription, value: Any) -> None:
        if subscription.active:
            subscription.listener(value)
