"""
fetch_page.py — Minimal hookurl example.

Fetches one page on the default context and prints what the callbacks saw.

Usage:
    python examples/fetch_page.py https://example.org/
"""

import sys

import hookurl


def main(url: str) -> None:
    def on_response(response: hookurl.URLResponse) -> None:
        print(f"status={response.status_code} type={response.mime_type}")

    def on_finished(connection: hookurl.Connection) -> None:
        if connection.error is not None:
            print(f"failed: {connection.error}")
            return
        print(f"received {len(connection.data)} bytes")

    conn = hookurl.create_connection(url, on_finished, on_response=on_response)
    conn.wait(timeout=60)


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "https://example.org/")
