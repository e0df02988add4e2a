"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Resource identity used by context admission.

Two requests target the same resource when their scheme, host, effective port
and path match. Query string, fragment, user info and method are ignored.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx

ResourceKey = Callable[[httpx.Request], str]

_DEFAULT_PORTS: dict[str, int] = {
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
    "ftp": 21,
}


def resource_identifier(target: httpx.Request | httpx.URL | str) -> str:
    """Return the deterministic resource key for a request, URL or URL string."""
    if isinstance(target, httpx.Request):
        url = target.url
    elif isinstance(target, httpx.URL):
        url = target
    else:
        url = httpx.URL(target)

    scheme = url.scheme.lower()
    host = url.host.lower()
    port = url.port
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    path = url.path or "/"
    return f"{scheme}://{host}{path}"
