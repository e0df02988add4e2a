"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Queue-bound contexts: connection factory, admission and in-flight bookkeeping.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import Any

import httpx

from .connection import (
    Connection,
    ConnectionState,
    OnData,
    OnFinished,
    OnResponse,
    OnWillCacheResponse,
)
from ..errors import DuplicateResourceError, InvalidStateError, NetworkError
from ..identity import ResourceKey
from ..runtime.metrics import NoOpQueueMetrics, QueueMetrics
from ..runtime.queue import OperationQueue
from ..settings import (
    ConnectionSettings,
    OnRequestCallback,
    get_settings,
    shared_default_context,
)
from ..transport.contracts import Transport
from ..transport.router import create_default_transport

logger = logging.getLogger("hookurl.context")


def _coerce_request(request: httpx.Request | httpx.URL | str) -> httpx.Request:
    if isinstance(request, httpx.Request):
        return request
    if isinstance(request, (httpx.URL, str)):
        return httpx.Request("GET", request)
    raise TypeError(f"Unsupported request type: {type(request).__name__}")


class Context:
    """
    Namespace binding connections to one queue under shared policy.

    When uniqueness is enforced, at most one connection per resource id is
    ENQUEUED or RUNNING in this context at a time. The reservation is taken on
    enqueue and released on the terminal transition, before ``on_finished``
    runs, whatever the outcome.
    """

    def __init__(
        self,
        queue: OperationQueue,
        *,
        on_request: OnRequestCallback | None = None,
        authentication_delegate: Any = None,
        transport: Transport,
        resource_key: ResourceKey,
        enforce_unique: bool | None = None,
        metrics: QueueMetrics | None = None,
    ) -> None:
        self._queue = queue
        self._on_request = on_request
        self._authentication_delegate = authentication_delegate
        self._transport = transport
        self._resource_key = resource_key
        self._enforce_unique = enforce_unique
        self._metrics: QueueMetrics = metrics or NoOpQueueMetrics()
        self._lock = threading.Lock()
        self._in_flight: Counter[str] = Counter()
        self._connections: set[Connection] = set()

    @property
    def queue(self) -> OperationQueue:
        return self._queue

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def authentication_delegate(self) -> Any:
        return self._authentication_delegate

    @property
    def on_request(self) -> OnRequestCallback | None:
        return self._on_request

    @property
    def enforces_unique_requested_resource(self) -> bool:
        """Own override when set, otherwise the live global setting."""
        if self._enforce_unique is not None:
            return self._enforce_unique
        return get_settings().enforce_unique_requested_resource

    @enforces_unique_requested_resource.setter
    def enforces_unique_requested_resource(self, unique: bool | None) -> None:
        self._enforce_unique = None if unique is None else bool(unique)

    @property
    def in_flight_resources(self) -> frozenset[str]:
        """Snapshot of resource ids currently ENQUEUED or RUNNING here."""
        with self._lock:
            return frozenset(self._in_flight)

    def is_in_flight(self, target: httpx.Request | httpx.URL | str) -> bool:
        key = self._resource_key(_coerce_request(target))
        with self._lock:
            return key in self._in_flight

    @property
    def active_connections(self) -> list[Connection]:
        with self._lock:
            return list(self._connections)

    def connection(
        self,
        *,
        on_response: OnResponse | None = None,
        on_data: OnData | None = None,
        on_finished: OnFinished | None = None,
        on_will_cache_response: OnWillCacheResponse | None = None,
        user_info: Any = None,
    ) -> Connection:
        """Return a new connection in CREATED, to be enqueued later."""
        return Connection(
            self,
            on_response=on_response,
            on_data=on_data,
            on_finished=on_finished,
            on_will_cache_response=on_will_cache_response,
            user_info=user_info,
        )

    def create_connection(
        self,
        request: httpx.Request | httpx.URL | str,
        on_finished: OnFinished | None = None,
        *,
        on_response: OnResponse | None = None,
        on_data: OnData | None = None,
        on_will_cache_response: OnWillCacheResponse | None = None,
        user_info: Any = None,
    ) -> Connection:
        """
        Create and enqueue a connection for ``request``.

        Raises:
            DuplicateResourceError: the resource is already in flight here and
                uniqueness is enforced. No connection is created.
        """
        request = _coerce_request(request)
        resource_id = self._resource_key(request)
        self._admit(resource_id)
        connection = self.connection(
            on_response=on_response,
            on_data=on_data,
            on_finished=on_finished,
            on_will_cache_response=on_will_cache_response,
            user_info=user_info,
        )
        self._start(connection, request, resource_id)
        return connection

    def enqueue(
        self,
        connection: Connection,
        request: httpx.Request | httpx.URL | str | None = None,
    ) -> None:
        """
        Admit ``connection`` and submit it to the queue.

        Raises:
            InvalidStateError: the connection is not CREATED, has no request,
                or belongs to another context.
            DuplicateResourceError: admission was refused; the connection
                stays CREATED.
        """
        if connection.context is not self:
            raise InvalidStateError(f"Connection {connection.id[:8]} belongs to another context")
        if connection.state is not ConnectionState.CREATED:
            raise InvalidStateError(
                f"Connection {connection.id[:8]} cannot be enqueued while {connection.state.value}"
            )
        if request is None:
            request = connection.request
        if request is None:
            raise InvalidStateError(f"Connection {connection.id[:8]} has no request")
        request = _coerce_request(request)
        resource_id = self._resource_key(request)
        self._admit(resource_id)
        self._start(connection, request, resource_id)

    def cancel_all(self) -> None:
        """Cancel every connection of this context that is not terminal."""
        for connection in self.active_connections:
            connection.cancel()

    def _admit(self, resource_id: str) -> None:
        with self._lock:
            refused = self.enforces_unique_requested_resource and resource_id in self._in_flight
            if not refused:
                self._in_flight[resource_id] += 1

        if refused:
            logger.debug("Refused duplicate in-flight resource %s", resource_id)
            self._metrics.incr("connections_rejected_total")
            self._notify_on_request(False)
            raise DuplicateResourceError(resource_id)

    def _start(self, connection: Connection, request: httpx.Request, resource_id: str) -> None:
        try:
            connection._mark_enqueued(request, resource_id, self._queue)  # noqa: SLF001
        except InvalidStateError:
            self._unreserve(resource_id)
            raise

        with self._lock:
            self._connections.add(connection)
        self._metrics.incr("connections_admitted_total")
        self._notify_on_request(True)
        logger.debug("Connection %s enqueued for %s", connection.id[:8], resource_id)

        try:
            self._queue.submit(connection)
        except RuntimeError as exc:
            connection._fail(NetworkError(str(exc), cause=exc))  # noqa: SLF001

    def _release(self, connection: Connection) -> None:
        """Drop the reservation of a connection that reached its terminal state."""
        with self._lock:
            self._connections.discard(connection)
        if connection.resource_id is not None:
            self._unreserve(connection.resource_id)
        outcome = "success"
        if connection.state is ConnectionState.CANCELLED:
            outcome = "cancelled"
        elif connection.error is not None:
            outcome = "failure"
        self._metrics.incr("connections_finished_total", tags={"outcome": outcome})

    def _unreserve(self, resource_id: str) -> None:
        with self._lock:
            remaining = self._in_flight[resource_id] - 1
            if remaining > 0:
                self._in_flight[resource_id] = remaining
            else:
                self._in_flight.pop(resource_id, None)

    def _notify_on_request(self, started: bool) -> None:
        if self._on_request is None:
            return
        try:
            self._on_request(started)
        except Exception:  # noqa: BLE001
            logger.exception("on_request callback failed")

    def __repr__(self) -> str:
        return f"Context(queue={self._queue!r}, in_flight={len(self._in_flight)})"


def _build_context(
    settings: ConnectionSettings,
    *,
    queue: OperationQueue | None = None,
    on_request: OnRequestCallback | None = None,
    enforce_unique: bool | None = None,
    transport: Transport | None = None,
    metrics: QueueMetrics | None = None,
    queue_name: str | None = None,
) -> Context:
    queue = queue or settings.queue or OperationQueue(
        settings.max_concurrent_operations,
        name=queue_name,
        metrics=metrics,
    )
    return Context(
        queue,
        on_request=on_request if on_request is not None else settings.on_request,
        authentication_delegate=settings.authentication_delegate,
        transport=transport or settings.transport or create_default_transport(settings),
        resource_key=settings.resource_key,
        enforce_unique=enforce_unique,
        metrics=metrics,
    )


def create_context(
    queue: OperationQueue | None = None,
    on_request: OnRequestCallback | None = None,
    *,
    enforce_unique: bool | None = None,
    transport: Transport | None = None,
    metrics: QueueMetrics | None = None,
) -> Context:
    """
    Return a new context bound to ``queue``.

    Anything not given is taken from the current settings; without any queue a
    new ``OperationQueue`` sized by ``max_concurrent_operations`` is created.
    ``on_request`` overrides the global default for this context.
    """
    return _build_context(
        get_settings(),
        queue=queue,
        on_request=on_request,
        enforce_unique=enforce_unique,
        transport=transport,
        metrics=metrics,
    )


def default_context() -> Context:
    """Return the shared default context, built from settings on first use."""
    return shared_default_context(
        lambda settings: _build_context(settings, queue_name="hookurl-default")
    )


def connection(**callbacks: Any) -> Connection:
    """Return a CREATED connection bound to the default context."""
    return default_context().connection(**callbacks)


def create_connection(
    request: httpx.Request | httpx.URL | str,
    on_finished: OnFinished | None = None,
    **callbacks: Any,
) -> Connection:
    """Create and enqueue a connection in the default context."""
    return default_context().create_connection(request, on_finished, **callbacks)
