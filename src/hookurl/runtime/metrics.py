"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Metrics adapters for queue and context instrumentation.
"""

from __future__ import annotations

from collections.abc import Mapping
from threading import Lock
from typing import Protocol


class QueueMetrics(Protocol):
    """Minimal metrics interface for queue and context instrumentation."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter metric."""


class NoOpQueueMetrics:
    """Default metrics sink when no metrics backend is provided."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = name
        _ = value
        _ = tags


_DESCRIPTIONS: dict[str, str] = {
    "connections_admitted_total": "Connections admitted by a context and handed to its queue",
    "connections_rejected_total": "Requests refused because their resource was already in flight",
    "connections_finished_total": "Connections that reached a terminal state, by outcome",
    "queue_operations_total": "Operations submitted to an operation queue",
}


class PrometheusQueueMetrics(QueueMetrics):
    """
    Exports hookurl's admission, completion and queue counters to Prometheus.

    Counter names are passed unprefixed and exported under ``namespace``, so
    ``connections_admitted_total`` becomes ``hookurl_connections_admitted_total``.
    Counters are created lazily on first use, one per name and label set.

    Requires `prometheus_client` package.
    """

    def __init__(self, *, namespace: str = "hookurl", registry=None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusQueueMetrics requires `prometheus_client` to be installed."
            ) from exc

        self._Counter = Counter
        self._namespace = namespace
        self._registry = registry if registry is not None else REGISTRY
        self._counters: dict[tuple[str, tuple[str, ...]], object] = {}
        self._lock = Lock()

    def incr(self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None) -> None:
        labels = dict(tags or {})
        label_names = tuple(sorted(labels))
        counter = self._counter(name, label_names)
        if label_names:
            counter.labels(**{label: str(labels[label]) for label in label_names}).inc(value)
        else:
            counter.inc(value)

    def _counter(self, name: str, label_names: tuple[str, ...]):
        key = (name, label_names)
        with self._lock:
            counter = self._counters.get(key)
            if counter is None:
                counter = self._Counter(
                    name=name,
                    documentation=_DESCRIPTIONS.get(name, f"hookurl counter {name}"),
                    namespace=self._namespace,
                    labelnames=label_names,
                    registry=self._registry,
                )
                self._counters[key] = counter
            return counter
