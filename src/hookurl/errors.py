"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for connection admission, state misuse, and network failures.
"""

from __future__ import annotations


class HookURLError(Exception):
    """Base error for hookurl."""


class AdmissionError(HookURLError):
    """Raised synchronously when a context refuses to admit a request."""


class DuplicateResourceError(AdmissionError):
    """Raised when the requested resource is already in flight in the context."""

    def __init__(self, resource_id: str) -> None:
        super().__init__(f"Resource already in flight: {resource_id}")
        self.resource_id = resource_id


class InvalidStateError(HookURLError):
    """Raised when a connection operation is not valid in its current state."""


class NetworkError(HookURLError):
    """
    Terminal failure reported by the transport.

    ``cause`` carries whatever the transport surfaced (DNS failure, TLS
    failure, timeout, refused connection, ...). It is also chained as
    ``__cause__`` when the error is raised from it.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionCancelledError(NetworkError):
    """Terminal outcome of a connection that was explicitly cancelled."""

    def __init__(self, message: str = "Connection cancelled") -> None:
        super().__init__(message)
