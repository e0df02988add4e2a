"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

httpx-backed transport for http and https URLs.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import NetworkError
from .cache import ResponseCache
from .contracts import CachedResponse, TransportEvents, URLResponse

logger = logging.getLogger("hookurl.transport")

_NO_CACHE_DIRECTIVES = ("no-cache", "no-store")


def _network_error(exc: httpx.HTTPError) -> NetworkError:
    return NetworkError(f"{type(exc).__name__}: {exc}", cause=exc)


class HttpxTransport:
    """
    Streams one request through an ``httpx.Client``.

    HTTP error statuses are delivered as ordinary responses; only transport
    level failures (DNS, TLS, timeouts, refused connections, protocol errors)
    raise ``NetworkError``. ``auth`` is handed to httpx, which consults it
    for authentication challenges. With ``chunk_size=None`` body chunks are
    reported as they arrive.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        timeout_s: float = 30.0,
        follow_redirects: bool = True,
        chunk_size: int | None = None,
        cache: ResponseCache | None = None,
    ) -> None:
        if chunk_size is not None and chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout_s,
            follow_redirects=follow_redirects,
        )
        self._chunk_size = chunk_size
        self._cache = cache

    def send(
        self,
        request: httpx.Request,
        events: TransportEvents,
        *,
        auth: Any = None,
    ) -> None:
        cache_key = self._cache_key(request)
        if cache_key is not None and self._serve_cached(cache_key, request, events):
            return

        try:
            response = self._client.send(
                request,
                stream=True,
                auth=auth if auth is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as exc:
            raise _network_error(exc) from exc

        body: bytearray | None = None
        try:
            if events.is_cancel_requested:
                return
            url_response = URLResponse.from_httpx(response)
            events.receive_response(url_response)
            if cache_key is not None and self._is_storable(response):
                body = bytearray()
            for chunk in response.iter_bytes(chunk_size=self._chunk_size):
                if events.is_cancel_requested:
                    logger.debug("Stopping transfer of %s on cancel", request.url)
                    return
                if not chunk:
                    continue
                if body is not None:
                    body.extend(chunk)
                events.receive_data(chunk)
        except httpx.HTTPError as exc:
            raise _network_error(exc) from exc
        finally:
            response.close()

        if cache_key is not None and body is not None:
            offered = events.will_cache_response(
                CachedResponse(response=url_response, data=bytes(body))
            )
            if offered is not None:
                self._cache.set(cache_key, offered)  # type: ignore[union-attr]

    def close(self) -> None:
        """Close the underlying client when this transport created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _cache_key(self, request: httpx.Request) -> str | None:
        if self._cache is None or request.method != "GET":
            return None
        return str(request.url)

    def _serve_cached(
        self,
        key: str,
        request: httpx.Request,
        events: TransportEvents,
    ) -> bool:
        control = request.headers.get("cache-control", "").lower()
        if any(directive in control for directive in _NO_CACHE_DIRECTIVES):
            return False
        cached = self._cache.get(key)  # type: ignore[union-attr]
        if cached is None:
            return False
        logger.debug("Serving %s from response cache", request.url)
        events.receive_response(cached.response)
        if cached.data and not events.is_cancel_requested:
            events.receive_data(cached.data)
        return True

    @staticmethod
    def _is_storable(response: httpx.Response) -> bool:
        if response.status_code != 200:
            return False
        return "no-store" not in response.headers.get("cache-control", "").lower()
