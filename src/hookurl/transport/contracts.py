"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Contracts between connections and the transports that perform the I/O.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import httpx


@dataclass(frozen=True, slots=True)
class URLResponse:
    """
    Response metadata reported once per connection, before any body chunk.

    ``status_code`` is ``None`` for non-HTTP schemes.
    """

    url: httpx.URL
    status_code: int | None = None
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    expected_content_length: int | None = None
    mime_type: str | None = None

    @property
    def is_http(self) -> bool:
        """Whether the response came from an HTTP exchange."""
        return self.status_code is not None

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "URLResponse":
        """Build response metadata from an ``httpx.Response``."""
        length = response.headers.get("content-length")
        content_type = response.headers.get("content-type")
        return cls(
            url=response.url,
            status_code=response.status_code,
            headers=response.headers,
            expected_content_length=int(length) if length and length.isdigit() else None,
            mime_type=content_type.split(";", 1)[0].strip() if content_type else None,
        )


@dataclass(frozen=True, slots=True)
class CachedResponse:
    """One response offered to (or served from) a response cache."""

    response: URLResponse
    data: bytes
    stored_at: float = field(default_factory=time.time)


@runtime_checkable
class TransportEvents(Protocol):
    """Event sink a transport reports into while performing one request."""

    @property
    def is_cancel_requested(self) -> bool:
        """Whether the transport should stop as soon as possible."""

    def receive_response(self, response: URLResponse) -> None:
        """Report response metadata (at most once)."""

    def receive_data(self, chunk: bytes) -> None:
        """Report one body chunk, in arrival order."""

    def will_cache_response(self, cached: CachedResponse) -> CachedResponse | None:
        """Offer a response for caching; ``None`` suppresses storage."""


@runtime_checkable
class Transport(Protocol):
    """
    Performs one request synchronously on the calling worker thread.

    Returns on success and raises on failure. Cancellation is cooperative:
    implementations poll ``events.is_cancel_requested`` and return early.
    """

    def send(
        self,
        request: httpx.Request,
        events: TransportEvents,
        *,
        auth: Any = None,
    ) -> None: ...
