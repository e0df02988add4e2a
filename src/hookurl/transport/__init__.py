"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Transports perform the actual I/O for connections.
"""

from .cache import InMemoryResponseCache, ResponseCache
from .contracts import CachedResponse, Transport, TransportEvents, URLResponse
from .file import FileTransport
from .httpx_transport import HttpxTransport
from .router import SchemeRouterTransport, create_default_transport

__all__ = [
    "Transport",
    "TransportEvents",
    "URLResponse",
    "CachedResponse",
    "ResponseCache",
    "InMemoryResponseCache",
    "HttpxTransport",
    "FileTransport",
    "SchemeRouterTransport",
    "create_default_transport",
]
