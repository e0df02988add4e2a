#!/usr/bin/env python3
"""
Connection benchmark utility for queue throughput/latency characterization.

Runs connections against an in-process transport that sleeps per request, so
only the queue, admission and callback dispatch overhead is measured.

Usage examples:
  PYTHONPATH=src python scripts/connection_benchmark.py
  PYTHONPATH=src python scripts/connection_benchmark.py --num-requests 500 --concurrency 32 --duplicate-ratio 0.2
"""

from __future__ import annotations

import argparse
import random
import statistics
import threading
import time

from hookurl import (
    DuplicateResourceError,
    OperationQueue,
    URLResponse,
    create_context,
)


class SleepTransport:
    def __init__(self, latency_ms: float) -> None:
        self._latency_s = latency_ms / 1000.0

    def send(self, request, events, *, auth=None) -> None:
        _ = auth
        time.sleep(self._latency_s)
        events.receive_response(URLResponse(url=request.url, status_code=200))
        events.receive_data(b"x" * 512)


def run_benchmark(
    *,
    num_requests: int,
    concurrency: int,
    latency_ms: float,
    duplicate_ratio: float,
) -> None:
    queue = OperationQueue(concurrency, name="bench")
    context = create_context(queue, transport=SleepTransport(latency_ms))

    lock = threading.Lock()
    latencies: list[float] = []
    connections = []
    refused = 0

    def on_finished(connection) -> None:
        with lock:
            latencies.append(time.perf_counter() - connection.user_info)

    started = time.perf_counter()
    for index in range(num_requests):
        path = "hot" if random.random() < duplicate_ratio else f"item/{index}"
        try:
            connections.append(
                context.create_connection(
                    f"https://bench.local/{path}",
                    on_finished,
                    user_info=time.perf_counter(),
                )
            )
        except DuplicateResourceError:
            refused += 1

    for connection in connections:
        connection.wait(timeout=120)
    elapsed = time.perf_counter() - started
    queue.shutdown()

    throughput = len(latencies) / elapsed if elapsed > 0 else 0.0
    p50 = statistics.median(latencies) if latencies else 0.0
    p95 = sorted(latencies)[int(0.95 * (len(latencies) - 1))] if latencies else 0.0

    print(f"requests={num_requests}")
    print(f"admitted={len(latencies)}")
    print(f"refused_duplicates={refused}")
    print(f"concurrency={concurrency}")
    print(f"transport_latency_ms={latency_ms:.2f}")
    print(f"elapsed_s={elapsed:.3f}")
    print(f"throughput_rps={throughput:.2f}")
    print(f"latency_p50_ms={p50 * 1000:.2f}")
    print(f"latency_p95_ms={p95 * 1000:.2f}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Connection benchmark utility")
    parser.add_argument("--num-requests", type=int, default=200)
    parser.add_argument("--concurrency", type=int, default=16)
    parser.add_argument("--latency-ms", type=float, default=10.0)
    parser.add_argument("--duplicate-ratio", type=float, default=0.0)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    run_benchmark(
        num_requests=args.num_requests,
        concurrency=args.concurrency,
        latency_ms=args.latency_ms,
        duplicate_ratio=args.duplicate_ratio,
    )


if __name__ == "__main__":
    main()
