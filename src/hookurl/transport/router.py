"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Scheme-based transport dispatch and the default transport factory.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from ..errors import NetworkError
from .contracts import Transport, TransportEvents
from .file import FileTransport
from .httpx_transport import HttpxTransport

if TYPE_CHECKING:
    from ..settings import ConnectionSettings


class SchemeRouterTransport:
    """Dispatch each request to the transport registered for its URL scheme."""

    def __init__(self, routes: Mapping[str, Transport]) -> None:
        self._routes = {scheme.strip().lower(): transport for scheme, transport in routes.items()}
        if not self._routes:
            raise ValueError("routes must not be empty")

    @property
    def schemes(self) -> list[str]:
        return sorted(self._routes)

    def send(
        self,
        request: httpx.Request,
        events: TransportEvents,
        *,
        auth: Any = None,
    ) -> None:
        scheme = request.url.scheme.lower()
        transport = self._routes.get(scheme)
        if transport is None:
            raise NetworkError(f"Unsupported URL scheme: {scheme!r}")
        transport.send(request, events, auth=auth)


def create_default_transport(settings: ConnectionSettings | None = None) -> SchemeRouterTransport:
    """Build the default transport: httpx for http/https, local files for file."""
    if settings is None:
        from ..settings import get_settings

        settings = get_settings()
    http = HttpxTransport(
        timeout_s=settings.timeout_s,
        follow_redirects=settings.follow_redirects,
    )
    return SchemeRouterTransport({"http": http, "https": http, "file": FileTransport()})
