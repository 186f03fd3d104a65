"""Synchronous publish/subscribe channel for progress events."""
import threading
import time
import uuid
from collections.abc import Callable

import structlog

from objindex.events.types import ProgressEvent

logger = structlog.get_logger()

ProgressCallback = Callable[[ProgressEvent], None]


class ProgressReporter:
    """Fan-out of progress events to registered callbacks.

    Events are delivered synchronously on the emitting thread, in
    subscription order. The subscriber table is guarded by a lock and
    delivery iterates over a snapshot, so callbacks may subscribe or
    unsubscribe while an event is being delivered.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, ProgressCallback] = {}
        self._lock = threading.Lock()
        self._phase_started = time.monotonic()

    @property
    def subscriber_count(self) -> int:
        """Number of registered callbacks."""
        return len(self._subscribers)

    def subscribe(self, callback: ProgressCallback) -> str:
        """Register a callback for future events.

        Args:
            callback: Called with each emitted ProgressEvent.

        Returns:
            Subscriber id for unsubscribe().
        """
        subscriber_id = str(uuid.uuid4())
        with self._lock:
            self._subscribers[subscriber_id] = callback
        return subscriber_id

    def unsubscribe(self, subscriber_id: str) -> None:
        """Remove a callback; unknown ids are ignored."""
        with self._lock:
            self._subscribers.pop(subscriber_id, None)

    def emit(self, title: str, count: int, total: int) -> ProgressEvent:
        """Publish a progress snapshot to every subscriber.

        The phase clock restarts whenever ``count`` is zero.

        Args:
            title: Phase name.
            count: Units completed.
            total: Units in the phase.

        Returns:
            The event that was delivered.
        """
        now = time.monotonic()
        if count == 0:
            self._phase_started = now
        event = ProgressEvent(
            title=title,
            count=count,
            total=total,
            elapsed_ms=int((now - self._phase_started) * 1000),
        )

        with self._lock:
            subscribers = list(self._subscribers.items())

        for subscriber_id, callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.warning(
                    "progress_subscriber_failed",
                    subscriber_id=subscriber_id,
                    title=title,
                    exc_info=True,
                )
        return event
