"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Transport for ``file:`` URLs.
"""

from __future__ import annotations

import mimetypes
import os
from pathlib import Path
from typing import Any
from urllib.request import url2pathname

import httpx

from ..errors import NetworkError
from .contracts import TransportEvents, URLResponse


class FileTransport:
    """Reads local files in chunks and reports them like a network body."""

    def __init__(self, *, chunk_size: int = 65536) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self._chunk_size = chunk_size

    def send(
        self,
        request: httpx.Request,
        events: TransportEvents,
        *,
        auth: Any = None,
    ) -> None:
        _ = auth
        if request.url.scheme != "file":
            raise NetworkError(f"FileTransport cannot load {request.url}")

        path = Path(url2pathname(request.url.path))
        try:
            handle = path.open("rb")
        except OSError as exc:
            raise NetworkError(f"{type(exc).__name__}: {exc}", cause=exc) from exc

        with handle:
            size = os.fstat(handle.fileno()).st_size
            events.receive_response(
                URLResponse(
                    url=request.url,
                    status_code=None,
                    expected_content_length=size,
                    mime_type=mimetypes.guess_type(path.name)[0],
                )
            )
            while not events.is_cancel_requested:
                chunk = handle.read(self._chunk_size)
                if not chunk:
                    break
                events.receive_data(chunk)
