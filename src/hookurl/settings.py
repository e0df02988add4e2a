"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Process-wide connection settings and explicit config loading.

Settings live in one lock-guarded holder. ``configure`` swaps in a new frozen
settings object; contexts snapshot what they need when they are created, so
changes are never retroactive. The admission flag is the one exception: it is
read live on every admission check of contexts without their own override.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from dataclasses import dataclass
from threading import RLock
from typing import TYPE_CHECKING, Any, TypeVar

from .identity import ResourceKey, resource_identifier

if TYPE_CHECKING:
    from .runtime.queue import OperationQueue
    from .transport.contracts import Transport

T = TypeVar("T")

OnRequestCallback = Callable[[bool], None]

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True, slots=True)
class ConnectionSettings:
    """Explicit settings read by contexts and the default transport."""

    enforce_unique_requested_resource: bool = True
    on_request: OnRequestCallback | None = None
    authentication_delegate: Any = None
    queue: OperationQueue | None = None
    transport: Transport | None = None
    resource_key: ResourceKey = resource_identifier

    max_concurrent_operations: int = 4
    timeout_s: float = 30.0
    follow_redirects: bool = True

    @staticmethod
    def from_env() -> "ConnectionSettings":
        """Load settings from environment variables."""
        return ConnectionSettings(
            enforce_unique_requested_resource=_env_bool("HOOKURL_ENFORCE_UNIQUE", True),
            max_concurrent_operations=int(os.getenv("HOOKURL_MAX_CONCURRENT", "4")),
            timeout_s=float(os.getenv("HOOKURL_TIMEOUT_S", "30")),
            follow_redirects=_env_bool("HOOKURL_FOLLOW_REDIRECTS", True),
        )


class _SettingsHolder:
    """Single owner of the active settings and the shared default context."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._settings = ConnectionSettings()
        self._default_context: Any = None

    def get(self) -> ConnectionSettings:
        with self._lock:
            return self._settings

    def replace(self, *, keep_default_context: bool = False, **changes: Any) -> ConnectionSettings:
        with self._lock:
            self._settings = dataclasses.replace(self._settings, **changes)
            if not keep_default_context:
                self._default_context = None
            return self._settings

    def reset(self, settings: ConnectionSettings | None = None) -> ConnectionSettings:
        with self._lock:
            self._settings = settings or ConnectionSettings()
            self._default_context = None
            return self._settings

    def default_context(self, factory: Callable[[ConnectionSettings], T]) -> T:
        with self._lock:
            if self._default_context is None:
                self._default_context = factory(self._settings)
            return self._default_context


_HOLDER = _SettingsHolder()


def get_settings() -> ConnectionSettings:
    """Return the active process-wide settings."""
    return _HOLDER.get()


def configure(**changes: Any) -> ConnectionSettings:
    """
    Replace one or more settings fields.

    The shared default context is dropped and rebuilt on next use; connections
    already enqueued keep running under the previous one.
    """
    return _HOLDER.replace(**changes)


def reset_settings(settings: ConnectionSettings | None = None) -> ConnectionSettings:
    """Restore defaults (or install ``settings``) and drop the default context."""
    return _HOLDER.reset(settings)


def set_enforce_unique_requested_resource(unique: bool) -> None:
    """Globally set whether in-flight requested resources must be unique."""
    _HOLDER.replace(
        enforce_unique_requested_resource=bool(unique),
        keep_default_context=True,
    )


def set_on_request(callback: OnRequestCallback | None) -> None:
    """Set the default admission callback for contexts created afterwards."""
    _HOLDER.replace(on_request=callback)


def set_queue(queue: OperationQueue | None) -> None:
    """Set the queue used by contexts created afterwards without their own queue."""
    _HOLDER.replace(queue=queue)


def set_authentication_delegate(delegate: Any) -> None:
    """Set the auth delegate (``httpx.Auth`` or credentials tuple) for new contexts."""
    _HOLDER.replace(authentication_delegate=delegate)


def set_transport(transport: Transport | None) -> None:
    """Set the transport used by contexts created afterwards."""
    _HOLDER.replace(transport=transport)


def shared_default_context(factory: Callable[[ConnectionSettings], T]) -> T:
    """Return the shared default context, building it with ``factory`` if needed."""
    return _HOLDER.default_context(factory)
