"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Response cache store consulted by transports.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

from .contracts import CachedResponse


class ResponseCache(Protocol):
    """Protocol implemented by response caches used in transports."""

    def get(self, key: str) -> CachedResponse | None: ...

    def set(self, key: str, value: CachedResponse) -> None: ...

    def delete(self, key: str) -> None: ...


@dataclass(slots=True)
class InMemoryResponseCache(ResponseCache):
    """Process-local cache suitable for development/test workloads."""

    ttl_s: float = 300.0

    def __post_init__(self) -> None:
        if self.ttl_s < 0:
            raise ValueError("ttl_s must be >= 0")
        self._rows: dict[str, CachedResponse] = {}
        self._lock = Lock()

    def get(self, key: str) -> CachedResponse | None:
        with self._lock:
            row = self._rows.get(key)
            if row is None:
                return None
            if row.stored_at + self.ttl_s < time.time():
                self._rows.pop(key, None)
                return None
            return row

    def set(self, key: str, value: CachedResponse) -> None:
        with self._lock:
            self._rows[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._rows.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)
