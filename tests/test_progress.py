"""Progress reporter tests."""

from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from objindex.events import ProgressEvent, ProgressReporter
from objindex.events import reporter as reporter_module


def test_delivers_in_subscription_order() -> None:
    """Subscribers are called synchronously in registration order."""
    reporter = ProgressReporter()
    calls: list[str] = []
    reporter.subscribe(lambda e: calls.append("first"))
    reporter.subscribe(lambda e: calls.append("second"))

    reporter.emit("Indexing", 0, 3)

    assert calls == ["first", "second"]


def test_events_are_immutable_snapshots() -> None:
    """Each emission delivers a new frozen event."""
    reporter = ProgressReporter()
    received: list[ProgressEvent] = []
    reporter.subscribe(received.append)

    reporter.emit("Indexing", 0, 2)
    reporter.emit("Indexing", 2, 2)

    assert received[0] is not received[1]
    assert (received[0].count, received[1].count) == (0, 2)
    with pytest.raises(ValidationError):
        received[0].count = 5  # type: ignore[misc]


def test_unsubscribe_stops_delivery() -> None:
    """Unsubscribed callbacks receive nothing further."""
    reporter = ProgressReporter()
    received: list[ProgressEvent] = []
    subscriber_id = reporter.subscribe(received.append)
    reporter.unsubscribe(subscriber_id)
    reporter.unsubscribe("unknown")

    reporter.emit("Indexing", 0, 1)

    assert received == []
    assert reporter.subscriber_count == 0


def test_failing_subscriber_does_not_block_others() -> None:
    """An exception in one callback is logged and delivery continues."""
    reporter = ProgressReporter()
    received: list[ProgressEvent] = []

    def broken(event: ProgressEvent) -> None:
        raise RuntimeError("boom")

    reporter.subscribe(broken)
    reporter.subscribe(received.append)

    reporter.emit("Optimizing", 0, 1)

    assert len(received) == 1


def test_clock_restarts_at_phase_start(monkeypatch: pytest.MonkeyPatch) -> None:
    """elapsed_ms counts from the last emission with count zero."""
    reporter = ProgressReporter()
    ticks = iter([10.0, 10.5, 20.0, 20.25])
    monkeypatch.setattr(reporter_module, "time", SimpleNamespace(monotonic=lambda: next(ticks)))

    first = reporter.emit("Indexing", 0, 4)
    middle = reporter.emit("Indexing", 2, 4)
    restarted = reporter.emit("Optimizing", 0, 1)
    done = reporter.emit("Optimizing", 1, 1)

    assert first.elapsed_ms == 0
    assert middle.elapsed_ms == 500
    assert restarted.elapsed_ms == 0
    assert done.elapsed_ms == 250


def test_fraction() -> None:
    """fraction reports the completed share of a phase."""
    assert ProgressEvent(title="Indexing", count=1, total=4, elapsed_ms=0).fraction == 0.25
    assert ProgressEvent(title="Indexing", count=0, total=0, elapsed_ms=0).fraction == 1.0
