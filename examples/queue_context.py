"""
queue_context.py — Custom queue context with duplicate refusal and cancel.

Two connections to the same resource are submitted while the first is still
in flight; the second is refused. A third connection streams its body through
``on_data`` and is cancelled after the first chunk.

Usage:
    python examples/queue_context.py
"""

import logging

import hookurl

logging.basicConfig(level=logging.DEBUG)


def main() -> None:
    queue = hookurl.OperationQueue(max_concurrent_operations=2)
    context = hookurl.create_context(
        queue,
        on_request=lambda started: print(f"admitted={started}"),
    )

    first = context.create_connection("https://example.org/")
    try:
        context.create_connection("https://example.org/?again=1")
    except hookurl.DuplicateResourceError as exc:
        print(f"refused: {exc.resource_id}")

    def on_data(chunk: bytes) -> None:
        print(f"chunk of {len(chunk)} bytes, cancelling")
        streamed.cancel()

    streamed = context.connection(
        on_data=on_data,
        on_finished=lambda c: print(f"streamed finished, error={c.error!r}"),
    )
    streamed.enqueue_with_request("https://www.iana.org/")

    first.wait(timeout=60)
    streamed.wait(timeout=60)
    queue.shutdown()


if __name__ == "__main__":
    main()
