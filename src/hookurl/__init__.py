"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Callback-based URL connections.

A connection performs one request on an operation queue and reports to plain
callables instead of a delegate object. Connections are created through a
context, either the shared default one or a custom context bound to its own
queue. A context can refuse a request for a resource that is already in
flight.

Quick start::

    import hookurl

    def done(connection):
        if connection.error is None:
            print(connection.http_status_code, len(connection.data))

    hookurl.create_connection("https://example.org/", on_finished=done)

    queue = hookurl.OperationQueue(max_concurrent_operations=2)
    context = hookurl.create_context(queue)
    conn = context.connection(on_response=lambda response: print(response.status_code))
    conn.enqueue_with_request("https://example.org/feed")
    conn.cancel()
"""

from .core import (
    Connection,
    ConnectionState,
    OnData,
    OnFinished,
    OnResponse,
    OnWillCacheResponse,
    Context,
    create_context,
    default_context,
)
from .core.context import connection, create_connection
from .errors import (
    AdmissionError,
    ConnectionCancelledError,
    DuplicateResourceError,
    HookURLError,
    InvalidStateError,
    NetworkError,
)
from .identity import ResourceKey, resource_identifier
from .runtime import (
    NoOpQueueMetrics,
    Operation,
    OperationQueue,
    PrometheusQueueMetrics,
    QueueMetrics,
)
from .settings import (
    ConnectionSettings,
    configure,
    get_settings,
    reset_settings,
    set_authentication_delegate,
    set_enforce_unique_requested_resource,
    set_on_request,
    set_queue,
    set_transport,
)
from .transport import (
    CachedResponse,
    FileTransport,
    HttpxTransport,
    InMemoryResponseCache,
    ResponseCache,
    SchemeRouterTransport,
    Transport,
    TransportEvents,
    URLResponse,
    create_default_transport,
)

__all__ = [
    "Connection",
    "ConnectionState",
    "OnResponse",
    "OnData",
    "OnFinished",
    "OnWillCacheResponse",
    "Context",
    "connection",
    "create_connection",
    "create_context",
    "default_context",
    "HookURLError",
    "AdmissionError",
    "DuplicateResourceError",
    "InvalidStateError",
    "NetworkError",
    "ConnectionCancelledError",
    "ResourceKey",
    "resource_identifier",
    "Operation",
    "OperationQueue",
    "QueueMetrics",
    "NoOpQueueMetrics",
    "PrometheusQueueMetrics",
    "ConnectionSettings",
    "configure",
    "get_settings",
    "reset_settings",
    "set_enforce_unique_requested_resource",
    "set_on_request",
    "set_queue",
    "set_authentication_delegate",
    "set_transport",
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
