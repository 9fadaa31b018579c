"""
EventBus - Thread-safe pub/sub system for overlay events.

Provides:
- Non-blocking publish() for producers (safe from the event loop and any thread)
- Background dispatcher thread for fan-out, preserving publish order
- Type-based and source-based filtering
"""

import logging
import queue
import threading
import time
from typing import Callable, Optional, Type

from signal_overlay.events.base import AnyEvent, Event

logger = logging.getLogger(__name__)


class Subscription:
    """
    Represents a subscription to the event bus.

    Callbacks run in the dispatcher thread, one event at a time.
    """

    def __init__(
        self,
        callback: Callable[[AnyEvent], None],
        event_type: Optional[Type[Event]] = None,
        source_filter: Optional[str] = None,
    ):
        """
        Create a subscription.

        Args:
            callback: Function to call with each event
            event_type: Only receive events of this type (None = all)
            source_filter: Only receive events from this source (None = all)
        """
        self.callback = callback
        self.event_type = event_type
        self.source_filter = source_filter
        self._active = True

        # Stats
        self.received_count = 0
        self.error_count = 0

    @property
    def active(self) -> bool:
        return self._active

    def matches(self, event: Event) -> bool:
        """Check if this subscription should receive the event."""
        if not self._active:
            return False

        if self.event_type is not None and not isinstance(event, self.event_type):
            return False

        if self.source_filter is not None and event.source != self.source_filter:
            return False

        return True

    def deliver(self, event: Event) -> bool:
        """
        Call the subscriber with an event.

        Returns:
            True if the callback completed, False if it raised
        """
        self.received_count += 1
        try:
            self.callback(event)
            return True
        except Exception:
            self.error_count += 1
            logger.error(
                "event_callback_error",
                extra={"event_type": type(event).__name__},
                exc_info=True,
            )
            return False

    def deactivate(self):
        """Mark subscription as inactive (pending removal)."""
        self._active = False


class EventBus:
    """
    Thread-safe event distribution bus.

    Producers call publish() which is non-blocking and safe from any thread.
    Subscribers receive events via callbacks in the dispatcher thread.

    Usage:
        bus = EventBus()
        bus.start()

        bus.subscribe(SnapshotEvent, lambda e: print(len(e.snapshot)))
        bus.publish(TextEvent(category="test", message="Hello"))

        bus.stop()
    """

    def __init__(self, dispatch_queue_size: int = 1000):
        """
        Create an event bus.

        Args:
            dispatch_queue_size: Size of main dispatch queue
        """
        self._dispatch_queue: queue.Queue = queue.Queue(maxsize=dispatch_queue_size)
        self._subscriptions: list[Subscription] = []
        self._subscriptions_lock = threading.Lock()

        # Dispatcher thread
        self._dispatcher_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False

        # Stats
        self._published_count = 0
        self._dispatched_count = 0
        self._dropped_count = 0

    @property
    def is_running(self) -> bool:
        """Check if dispatcher is running."""
        return self._running

    def start(self) -> None:
        """Start the dispatcher thread."""
        if self._running:
            return

        self._stop_event.clear()
        self._dispatcher_thread = threading.Thread(
            target=self._dispatcher_loop,
            name="EventBusDispatcher",
            daemon=True
        )
        self._dispatcher_thread.start()
        self._running = True

    def stop(self, timeout: float = 2.0) -> None:
        """
        Stop the dispatcher thread.

        Args:
            timeout: Max seconds to wait for thread to stop
        """
        if not self._running:
            return

        self._stop_event.set()

        if self._dispatcher_thread and self._dispatcher_thread.is_alive():
            self._dispatcher_thread.join(timeout=timeout)

        self._dispatcher_thread = None
        self._running = False

    def __enter__(self) -> "EventBus":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def publish(self, event: Event) -> bool:
        """
        Publish an event (non-blocking).

        Args:
            event: Event to publish

        Returns:
            True if queued, False if dropped (queue full)
        """
        try:
            self._dispatch_queue.put_nowait(event)
            self._published_count += 1
            return True
        except queue.Full:
            self._dropped_count += 1
            logger.warning("event_dropped", extra={"event_type": type(event).__name__})
            return False

    def subscribe(
        self,
        event_type: Optional[Type[Event]] = None,
        callback: Optional[Callable[[AnyEvent], None]] = None,
        source_filter: Optional[str] = None,
    ) -> Subscription:
        """
        Subscribe to events.

        Args:
            event_type: Type of event to receive (None = all)
            callback: Function to call with each event
            source_filter: Only receive from this source (None = all)

        Returns:
            Subscription object (can be used to unsubscribe)
        """
        if callback is None:
            raise ValueError("callback is required")

        subscription = Subscription(
            callback=callback,
            event_type=event_type,
            source_filter=source_filter,
        )

        with self._subscriptions_lock:
            self._subscriptions.append(subscription)

        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Remove a subscription.

        Returns:
            True if removed, False if not found
        """
        subscription.deactivate()

        with self._subscriptions_lock:
            try:
                self._subscriptions.remove(subscription)
                return True
            except ValueError:
                return False

    def drain(self, timeout: float = 2.0) -> bool:
        """
        Block until every published event has been dispatched.

        Args:
            timeout: Max seconds to wait

        Returns:
            True if the queue drained, False on timeout
        """
        deadline = time.monotonic() + timeout
        while self._dispatch_queue.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.005)
        return True

    def _dispatcher_loop(self) -> None:
        """
        Main dispatch loop (runs in background thread).

        Pulls events from dispatch queue and fans out to subscribers.
        """
        while not self._stop_event.is_set():
            try:
                event = self._dispatch_queue.get(timeout=0.1)
            except queue.Empty:
                continue

            try:
                with self._subscriptions_lock:
                    subscriptions = list(self._subscriptions)

                for sub in subscriptions:
                    if sub.matches(event):
                        sub.deliver(event)

                self._dispatched_count += 1
            except Exception:
                logger.error("event_dispatch_error", exc_info=True)
            finally:
                self._dispatch_queue.task_done()

    def get_stats(self) -> dict:
        """Get bus statistics."""
        with self._subscriptions_lock:
            sub_stats = [
                {
                    "type": sub.event_type.__name__ if sub.event_type else "all",
                    "source": sub.source_filter or "all",
                    "received": sub.received_count,
                    "errors": sub.error_count,
                }
                for sub in self._subscriptions
            ]

        return {
            "published": self._published_count,
            "dispatched": self._dispatched_count,
            "dropped": self._dropped_count,
            "queue_size": self._dispatch_queue.qsize(),
            "subscribers": sub_stats,
        }
