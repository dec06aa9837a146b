"""Publish/subscribe hub for change notifications.

A single publisher (the file watcher) fans change events out to every
connected viewer. Subscriptions only see events published after they were
created; there is no history buffer.

Subscriptions belong to the event loop they were created on. ``publish`` and
``Subscription.close`` may be called from any thread; off-loop calls are
handed to the owning loop with ``call_soon_threadsafe``.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 16


@dataclass(frozen=True)
class ChangeEvent:
    """Something relevant on disk changed.

    Carries no payload: every event means "reload", so any event is
    equivalent to any other.
    """


class Subscription:
    """A registration with a NotificationHub.

    Usable as a context manager (released on exit) and as an async iterator
    yielding events in publish order. Closing the subscription ends any
    iteration in progress.
    """

    def __init__(self, hub: "NotificationHub", buffer_size: int) -> None:
        self._hub = hub
        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        # None is queued on close to wake a waiting consumer
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue(maxsize=buffer_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def get(self) -> ChangeEvent | None:
        """Wait for the next event.

        Returns:
            The next event, or None once the subscription is closed
        """
        if self._closed:
            return None
        event = await self._queue.get()
        if self._closed:
            return None
        return event

    def close(self) -> None:
        """Release the subscription and wake its consumer. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._hub._unsubscribe(self)
        self._call_in_loop(self._wake)

    def _deliver(self, event: ChangeEvent) -> bool:
        if self._closed:
            return False
        if threading.get_ident() != self._loop_thread:
            self._loop.call_soon_threadsafe(self._put, event)
            return True
        return self._put(event)

    def _put(self, event: ChangeEvent) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            # A reload is already pending for this subscriber
            return False
        return True

    def _wake(self) -> None:
        # A full queue means nobody is waiting on it
        with contextlib.suppress(asyncio.QueueFull):
            self._queue.put_nowait(None)

    def _call_in_loop(self, callback: Callable[[], None]) -> None:
        if threading.get_ident() == self._loop_thread:
            callback()
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class NotificationHub:
    """Fans change events out to all live subscriptions."""

    def __init__(self, *, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        """Initialize the hub.

        Args:
            buffer_size: Maximum number of undelivered events kept per subscription
        """
        self._buffer_size = buffer_size
        self._subscriptions: set[Subscription] = set()
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        """Register a new subscription receiving all future events.

        Must be called from a running event loop; events are delivered on it.
        """
        subscription = Subscription(self, self._buffer_size)
        with self._lock:
            self._subscriptions.add(subscription)
        logger.debug(f"Subscribed, {self.subscriber_count} active")
        return subscription

    def publish(self, event: ChangeEvent | None = None) -> int:
        """Send an event to every current subscription.

        Events published while nobody is subscribed are dropped. Safe to call
        from any thread.

        Args:
            event: Event to publish (a fresh ChangeEvent if omitted)

        Returns:
            Number of subscriptions the event was queued for. Deliveries
            handed over from another thread are counted as queued.
        """
        if event is None:
            event = ChangeEvent()

        with self._lock:
            subscriptions = list(self._subscriptions)

        delivered = sum(1 for s in subscriptions if s._deliver(event))
        logger.debug(f"Published change to {delivered}/{len(subscriptions)} subscribers")
        return delivered

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.discard(subscription)
        logger.debug(f"Unsubscribed, {self.subscriber_count} active")
