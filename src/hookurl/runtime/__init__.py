"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .metrics import NoOpQueueMetrics, PrometheusQueueMetrics, QueueMetrics
from .queue import Operation, OperationQueue

__all__ = [
    "Operation",
    "OperationQueue",
    "QueueMetrics",
    "NoOpQueueMetrics",
    "PrometheusQueueMetrics",
]
