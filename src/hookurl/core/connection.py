"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

One request's lifecycle, from creation to its terminal state.

State machine::

    CREATED -> ENQUEUED -> RUNNING -> FINISHED | CANCELLED
    CREATED | ENQUEUED -> CANCELLED

Callback contract for one connection:
- ``on_response`` fires at most once, before any ``on_data``.
- ``on_data`` fires zero or more times, in arrival order. Without it the
  chunks accumulate in ``data``.
- ``on_finished`` fires exactly once, after every other callback returned.
  It fires for every connection that reached ENQUEUED and for connections
  cancelled while still CREATED.

Callbacks run on queue worker threads, except ``on_finished`` for a
connection cancelled before it started, which runs on the cancelling thread.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from ..errors import ConnectionCancelledError, InvalidStateError, NetworkError
from ..transport.contracts import CachedResponse, URLResponse

if TYPE_CHECKING:
    from .context import Context
    from ..runtime.queue import OperationQueue

logger = logging.getLogger("hookurl.connection")

OnResponse = Callable[[URLResponse], None]
OnData = Callable[[bytes], None]
OnFinished = Callable[["Connection"], None]
OnWillCacheResponse = Callable[[CachedResponse], "CachedResponse | None"]


class ConnectionState(str, Enum):
    """Lifecycle states of a connection."""

    CREATED = "created"
    ENQUEUED = "enqueued"
    RUNNING = "running"
    FINISHED = "finished"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ConnectionState.FINISHED, ConnectionState.CANCELLED)


@dataclass(frozen=True, slots=True)
class _Callbacks:
    on_response: OnResponse | None = None
    on_data: OnData | None = None
    on_finished: OnFinished | None = None
    on_will_cache_response: OnWillCacheResponse | None = None


class Connection:
    """
    A callback-driven URL connection bound to a context.

    Do not construct directly; use ``Context.connection`` or
    ``Context.create_connection``. Callback attributes may be assigned until
    the connection is enqueued; they are captured at that point.
    """

    def __init__(
        self,
        context: Context,
        *,
        on_response: OnResponse | None = None,
        on_data: OnData | None = None,
        on_finished: OnFinished | None = None,
        on_will_cache_response: OnWillCacheResponse | None = None,
        user_info: Any = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.on_response = on_response
        self.on_data = on_data
        self.on_finished = on_finished
        self.on_will_cache_response = on_will_cache_response
        self.user_info = user_info

        self._context = context
        self._lock = threading.Lock()
        # Held from the state check through user callback dispatch.
        self._dispatch_lock = threading.RLock()
        self._done = threading.Event()
        self._state = ConnectionState.CREATED
        self._callbacks = _Callbacks()
        self._request: httpx.Request | None = None
        self._resource_id: str | None = None
        self._queue: OperationQueue | None = None
        self._response: URLResponse | None = None
        self._buffer = bytearray()
        self._error: NetworkError | None = None
        self._reserved = False
        self._finish_notified = False
        self._dispatch_thread: int | None = None

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def context(self) -> Context:
        return self._context

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def request(self) -> httpx.Request | None:
        return self._request

    @property
    def resource_id(self) -> str | None:
        """Admission key, set when the connection is enqueued."""
        return self._resource_id

    @property
    def response(self) -> URLResponse | None:
        """Response metadata, set when the transport reports it."""
        return self._response

    @property
    def data(self) -> bytes:
        """Body received so far when no ``on_data`` callback was supplied."""
        with self._lock:
            return bytes(self._buffer)

    @property
    def error(self) -> NetworkError | None:
        """Terminal failure, ``None`` on success or while still active."""
        return self._error

    @property
    def http_status_code(self) -> int:
        """HTTP status of the response, ``0`` until an HTTP response arrives."""
        response = self._response
        if response is None or response.status_code is None:
            return 0
        return response.status_code

    @property
    def is_finished(self) -> bool:
        return self._state is ConnectionState.FINISHED

    @property
    def is_cancelled(self) -> bool:
        return self._state is ConnectionState.CANCELLED

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal

    # ------------------------------------------------------------------
    # Caller operations
    # ------------------------------------------------------------------

    def enqueue_with_request(self, request: httpx.Request | httpx.URL | str) -> None:
        """Enqueue this connection in its context's queue to perform ``request``."""
        self._context.enqueue(self, request)

    def cancel(self) -> None:
        """
        Cancel the connection. No-op when it is already terminal.

        A connection that has not started yet finishes immediately and its
        ``on_finished`` runs on the calling thread. A running connection asks
        the transport to stop; ``on_finished`` then runs on the worker thread
        once the transport has returned. If another thread is inside
        ``on_response`` or ``on_data``, this waits for that callback to
        return; no further one starts once ``cancel`` has returned.
        """
        with self._lock:
            previous = self._state
            if previous.is_terminal:
                return
            self._state = ConnectionState.CANCELLED
            self._error = ConnectionCancelledError()

        logger.debug("Connection %s cancelled while %s", self.id[:8], previous.value)
        if previous is ConnectionState.RUNNING:
            # Wait out a callback that passed its state check before the flip.
            with self._dispatch_lock:
                pass
        self._release_reservation()
        if previous is not ConnectionState.RUNNING:
            self._notify_finished()

    def blocked_cancel(self, timeout: float | None = None) -> bool:
        """
        Cancel and block until no further callback can fire.

        Returns ``True`` once the connection is done, ``False`` on timeout or
        when called from one of this connection's own callbacks, where waiting
        would never end.
        """
        self.cancel()
        if self._dispatch_thread == threading.get_ident():
            logger.warning(
                "blocked_cancel called from a callback of connection %s; not waiting",
                self.id[:8],
            )
            return False
        return self._done.wait(timeout)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until ``on_finished`` has returned. Returns ``False`` on timeout."""
        return self._done.wait(timeout)

    # ------------------------------------------------------------------
    # Context and queue hooks
    # ------------------------------------------------------------------

    def _mark_enqueued(
        self,
        request: httpx.Request,
        resource_id: str,
        queue: OperationQueue,
    ) -> None:
        with self._lock:
            if self._state is not ConnectionState.CREATED:
                raise InvalidStateError(
                    f"Connection {self.id[:8]} cannot be enqueued while {self._state.value}"
                )
            self._state = ConnectionState.ENQUEUED
            self._request = request
            self._resource_id = resource_id
            self._queue = queue
            self._reserved = True
            self._callbacks = _Callbacks(
                on_response=self.on_response,
                on_data=self.on_data,
                on_finished=self.on_finished,
                on_will_cache_response=self.on_will_cache_response,
            )

    def _fail(self, error: NetworkError) -> None:
        """Finish a connection that could not be handed to its queue."""
        with self._lock:
            if self._state.is_terminal:
                return
            self._state = ConnectionState.FINISHED
            self._error = error
        self._release_reservation()
        self._notify_finished()

    def run(self) -> None:
        """Perform the request through the context transport (queue worker thread)."""
        with self._lock:
            if self._state is not ConnectionState.ENQUEUED:
                return
            self._state = ConnectionState.RUNNING
            self._dispatch_thread = threading.get_ident()
            request = self._request

        logger.debug("Connection %s started %s %s", self.id[:8], request.method, request.url)
        error: NetworkError | None = None
        try:
            self._context.transport.send(
                request,
                self,
                auth=self._context.authentication_delegate,
            )
        except NetworkError as exc:
            error = exc
        except Exception as exc:  # noqa: BLE001
            logger.exception("Transport raised unexpectedly for connection %s", self.id[:8])
            error = NetworkError(f"{type(exc).__name__}: {exc}", cause=exc)

        with self._lock:
            if self._state is ConnectionState.RUNNING:
                self._state = ConnectionState.FINISHED
                self._error = error
        if error is not None and not isinstance(self._error, ConnectionCancelledError):
            logger.debug("Connection %s failed: %s", self.id[:8], error)
        self._release_reservation()
        self._notify_finished()

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------

    @property
    def is_cancel_requested(self) -> bool:
        return self._state is ConnectionState.CANCELLED

    def receive_response(self, response: URLResponse) -> None:
        with self._dispatch_lock:
            with self._lock:
                if self._state is not ConnectionState.RUNNING:
                    return
                if self._response is not None:
                    logger.debug("Ignoring repeated response for connection %s", self.id[:8])
                    return
                self._response = response
                callback = self._callbacks.on_response
            if callback is not None:
                self._invoke("on_response", callback, response)

    def receive_data(self, chunk: bytes) -> None:
        with self._dispatch_lock:
            with self._lock:
                if self._state is not ConnectionState.RUNNING:
                    return
                callback = self._callbacks.on_data
                if callback is None:
                    self._buffer.extend(chunk)
                    return
            self._invoke("on_data", callback, chunk)

    def will_cache_response(self, cached: CachedResponse) -> CachedResponse | None:
        with self._dispatch_lock:
            with self._lock:
                if self._state is not ConnectionState.RUNNING:
                    return None
                callback = self._callbacks.on_will_cache_response
            if callback is None:
                return cached
            try:
                return callback(cached)
            except Exception:  # noqa: BLE001
                logger.exception("on_will_cache_response failed for connection %s", self.id[:8])
                return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _invoke(self, name: str, callback: Callable[..., Any], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:  # noqa: BLE001
            logger.exception("%s callback failed for connection %s", name, self.id[:8])

    def _release_reservation(self) -> None:
        with self._lock:
            if not self._reserved:
                return
            self._reserved = False
        self._context._release(self)  # noqa: SLF001

    def _notify_finished(self) -> None:
        with self._lock:
            if self._finish_notified:
                return
            self._finish_notified = True
            if self._request is not None:
                callback = self._callbacks.on_finished
            else:
                callback = self.on_finished
            self._dispatch_thread = threading.get_ident()
        try:
            if callback is not None:
                self._invoke("on_finished", callback, self)
        finally:
            self._queue = None
            self._dispatch_thread = None
            self._done.set()

    def __repr__(self) -> str:
        url = self._request.url if self._request is not None else None
        return f"Connection(id={self.id[:8]!r}, state={self._state.value!r}, url={url!s})"
