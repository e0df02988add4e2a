"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Operation queue with bounded concurrency, suspension and bulk cancellation.
"""

from __future__ import annotations

import logging
import os
import threading
import uuid
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from .metrics import NoOpQueueMetrics, QueueMetrics

logger = logging.getLogger("hookurl.queue")


def _default_max_concurrency() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


class Operation(Protocol):
    """Unit of work accepted by ``OperationQueue``."""

    def run(self) -> None:
        """Execute the operation on a queue worker thread."""

    def cancel(self) -> None:
        """Request cancellation; must not block."""


class OperationQueue:
    """
    Runs submitted operations on worker threads, at most
    ``max_concurrent_operations`` at a time, in submission order.

    Operations run on the queue's own threads, never on the submitting
    thread. While suspended, pending operations are held and running ones
    continue. The queue is shared and externally owned: contexts only submit
    to it.
    """

    def __init__(
        self,
        max_concurrent_operations: int | None = None,
        *,
        name: str | None = None,
        metrics: QueueMetrics | None = None,
    ) -> None:
        if max_concurrent_operations is not None and max_concurrent_operations < 1:
            raise ValueError("max_concurrent_operations must be >= 1")
        self._max_concurrent = max_concurrent_operations or _default_max_concurrency()
        self._name = name or f"hookurl-queue-{uuid.uuid4().hex[:8]}"
        self._metrics: QueueMetrics = metrics or NoOpQueueMetrics()
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_concurrent,
            thread_name_prefix=self._name,
        )
        self._cond = threading.Condition()
        self._pending: deque[Operation] = deque()
        self._running: set[Operation] = set()
        self._suspended = False
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def max_concurrent_operations(self) -> int:
        return self._max_concurrent

    @property
    def is_suspended(self) -> bool:
        with self._cond:
            return self._suspended

    @property
    def pending_count(self) -> int:
        """Number of operations waiting for a worker."""
        with self._cond:
            return len(self._pending)

    @property
    def running_count(self) -> int:
        """Number of operations currently executing."""
        with self._cond:
            return len(self._running)

    def submit(self, operation: Operation) -> None:
        """Append one operation; returns immediately."""
        with self._cond:
            if self._closed:
                raise RuntimeError(f"OperationQueue {self._name} is shut down")
            self._pending.append(operation)
            self._pump_locked()
        self._metrics.incr("queue_operations_total", tags={"queue": self._name})

    def suspend(self) -> None:
        """Stop starting pending operations."""
        with self._cond:
            self._suspended = True

    def resume(self) -> None:
        """Resume starting pending operations."""
        with self._cond:
            self._suspended = False
            self._pump_locked()

    def cancel_all(self) -> None:
        """Cancel every pending and running operation."""
        with self._cond:
            operations = [*self._pending, *self._running]
            self._pending.clear()
            self._cond.notify_all()
        for operation in operations:
            operation.cancel()

    def wait_until_all_finished(self, timeout: float | None = None) -> bool:
        """Block until no operation is pending or running. Returns ``False`` on timeout."""
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._pending and not self._running,
                timeout=timeout,
            )

    def shutdown(self, *, wait: bool = True) -> None:
        """Refuse new operations, cancel pending ones and release worker threads."""
        with self._cond:
            self._closed = True
            pending = list(self._pending)
            self._pending.clear()
            self._cond.notify_all()
        for operation in pending:
            operation.cancel()
        self._executor.shutdown(wait=wait)

    def _pump_locked(self) -> None:
        while (
            not self._suspended
            and self._pending
            and len(self._running) < self._max_concurrent
        ):
            operation = self._pending.popleft()
            self._running.add(operation)
            self._executor.submit(self._execute, operation)

    def _execute(self, operation: Operation) -> None:
        try:
            operation.run()
        except Exception:  # noqa: BLE001
            logger.exception("Operation failed in queue %s", self._name)
        finally:
            with self._cond:
                self._running.discard(operation)
                if not self._closed:
                    self._pump_locked()
                self._cond.notify_all()

    def __repr__(self) -> str:
        return (
            f"OperationQueue(name={self._name!r}, "
            f"max_concurrent_operations={self._max_concurrent})"
        )
