from __future__ import annotations

import logging
import threading
import time

import pytest

from hookurl import OperationQueue


class SleepOperation:
    def __init__(self, tracker: "ConcurrencyTracker", delay_s: float = 0.05) -> None:
        self._tracker = tracker
        self._delay_s = delay_s
        self.cancelled = False
        self.ran = False

    def run(self) -> None:
        self.ran = True
        self._tracker.enter()
        try:
            time.sleep(self._delay_s)
        finally:
            self._tracker.leave()

    def cancel(self) -> None:
        self.cancelled = True


class ConcurrencyTracker:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.current = 0
        self.peak = 0
        self.order: list[int] = []

    def enter(self) -> None:
        with self._lock:
            self.current += 1
            self.peak = max(self.peak, self.current)

    def leave(self) -> None:
        with self._lock:
            self.current -= 1


class GateOperation:
    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()
        self.cancelled = False

    def run(self) -> None:
        self.started.set()
        self.release.wait(5)

    def cancel(self) -> None:
        self.cancelled = True
        self.release.set()


def test_concurrency_limit_is_respected():
    tracker = ConcurrencyTracker()
    queue = OperationQueue(2)
    try:
        for _ in range(6):
            queue.submit(SleepOperation(tracker))
        assert queue.wait_until_all_finished(5)
    finally:
        queue.shutdown()

    assert tracker.peak <= 2
    assert tracker.current == 0


def test_suspend_holds_pending_operations_until_resume():
    queue = OperationQueue(1)
    gate = GateOperation()
    try:
        queue.suspend()
        assert queue.is_suspended
        queue.submit(gate)
        assert not gate.started.wait(0.1)
        assert queue.pending_count == 1

        queue.resume()
        assert gate.started.wait(5)
        assert queue.running_count == 1
        gate.release.set()
        assert queue.wait_until_all_finished(5)
    finally:
        queue.shutdown()


def test_cancel_all_reaches_pending_and_running_operations():
    queue = OperationQueue(1)
    running = GateOperation()
    pending = GateOperation()
    try:
        queue.submit(running)
        assert running.started.wait(5)
        queue.submit(pending)

        queue.cancel_all()

        assert running.cancelled and pending.cancelled
        assert queue.wait_until_all_finished(5)
        assert not pending.started.is_set()
    finally:
        queue.shutdown()


def test_wait_until_all_finished_times_out():
    queue = OperationQueue(1)
    gate = GateOperation()
    try:
        queue.submit(gate)
        assert queue.wait_until_all_finished(0.05) is False
        gate.release.set()
        assert queue.wait_until_all_finished(5) is True
    finally:
        queue.shutdown()


def test_submit_after_shutdown_is_refused():
    queue = OperationQueue(1)
    queue.shutdown()
    with pytest.raises(RuntimeError):
        queue.submit(GateOperation())


def test_shutdown_cancels_pending_operations():
    queue = OperationQueue(1)
    running = GateOperation()
    pending = GateOperation()
    queue.submit(running)
    assert running.started.wait(5)
    queue.submit(pending)

    queue.shutdown(wait=False)
    running.release.set()
    time.sleep(0.05)

    assert pending.cancelled
    assert not pending.started.is_set()


def test_invalid_concurrency_is_rejected():
    with pytest.raises(ValueError):
        OperationQueue(0)


def test_failing_operation_is_logged_and_queue_keeps_running(caplog):
    class Boom:
        def run(self) -> None:
            raise RuntimeError("boom")

        def cancel(self) -> None:
            pass

    tracker = ConcurrencyTracker()
    follow_up = SleepOperation(tracker, delay_s=0)
    queue = OperationQueue(1, name="boom-queue")
    try:
        with caplog.at_level(logging.ERROR, logger="hookurl.queue"):
            queue.submit(Boom())
            queue.submit(follow_up)
            assert queue.wait_until_all_finished(5)
    finally:
        queue.shutdown()

    assert follow_up.ran
    assert any("boom-queue" in record.getMessage() for record in caplog.records)


def test_metrics_count_submitted_operations():
    class RecordingMetrics:
        def __init__(self) -> None:
            self.calls: list[tuple[str, dict]] = []

        def incr(self, name, value=1, *, tags=None):
            self.calls.append((name, dict(tags or {})))

    metrics = RecordingMetrics()
    queue = OperationQueue(1, name="metered", metrics=metrics)
    try:
        queue.submit(SleepOperation(ConcurrencyTracker(), delay_s=0))
        assert queue.wait_until_all_finished(5)
    finally:
        queue.shutdown()

    assert metrics.calls == [("queue_operations_total", {"queue": "metered"})]


def test_prometheus_metrics_adapter_counts_with_labels():
    prometheus_client = pytest.importorskip("prometheus_client")
    from hookurl import PrometheusQueueMetrics

    registry = prometheus_client.CollectorRegistry()
    metrics = PrometheusQueueMetrics(namespace="test", registry=registry)

    metrics.incr("connections_finished_total", tags={"outcome": "success"})
    metrics.incr("connections_finished_total", 2, tags={"outcome": "success"})

    value = registry.get_sample_value(
        "test_connections_finished_total",
        {"outcome": "success"},
    )
    assert value == 3.0


def test_prometheus_metrics_default_namespace_prefixes_counter_names_once():
    prometheus_client = pytest.importorskip("prometheus_client")
    from hookurl import PrometheusQueueMetrics

    registry = prometheus_client.CollectorRegistry()
    metrics = PrometheusQueueMetrics(registry=registry)

    metrics.incr("connections_admitted_total")

    assert registry.get_sample_value("hookurl_connections_admitted_total") == 1.0
    assert registry.get_sample_value("hookurl_hookurl_connections_admitted_total") is None
    families = {family.name: family for family in registry.collect()}
    assert families["hookurl_connections_admitted"].documentation.startswith("Connections admitted")
