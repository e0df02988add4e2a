"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: core/__init__.py.
"""

from .connection import (
    Connection,
    ConnectionState,
    OnData,
    OnFinished,
    OnResponse,
    OnWillCacheResponse,
)
from .context import Context, create_context, default_context

__all__ = [
    "Connection",
    "ConnectionState",
    "OnResponse",
    "OnData",
    "OnFinished",
    "OnWillCacheResponse",
    "Context",
    "create_context",
    "default_context",
]
