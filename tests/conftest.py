from __future__ import annotations

import threading

import httpx
import pytest

import hookurl
from hookurl import OperationQueue, URLResponse


def ok_response(url: str, status: int = 200) -> URLResponse:
    return URLResponse(url=httpx.URL(url), status_code=status)


class ScriptedTransport:
    """
    Transport replaying scripted steps per URL.

    Steps are ``(kind, value)`` pairs: ``response``, ``data``, ``wait`` (block
    on an Event), ``signal`` (set an Event), ``raise`` and ``cache``.
    """

    def __init__(self) -> None:
        self._scripts: dict[str, list[tuple[str, object]]] = {}
        self._lock = threading.Lock()
        self.calls: list[tuple[httpx.Request, object]] = []
        self.cache_results: list[object] = []

    def script(self, url: str, *steps: tuple[str, object]) -> None:
        self._scripts[url] = list(steps)

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def send(self, request, events, *, auth=None) -> None:
        with self._lock:
            self.calls.append((request, auth))
        url = str(request.url)
        steps = self._scripts.get(url, [("response", ok_response(url))])
        for kind, value in steps:
            if events.is_cancel_requested:
                return
            if kind == "response":
                events.receive_response(value)
            elif kind == "data":
                events.receive_data(value)
            elif kind == "wait":
                assert value.wait(5), "scripted gate never opened"
            elif kind == "signal":
                value.set()
            elif kind == "raise":
                raise value
            elif kind == "cache":
                self.cache_results.append(events.will_cache_response(value))
            else:
                raise AssertionError(f"unknown step {kind}")


@pytest.fixture(autouse=True)
def _reset_hookurl_settings():
    hookurl.reset_settings()
    yield
    hookurl.reset_settings()


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def queue():
    q = OperationQueue(2, name="test-queue")
    yield q
    q.shutdown(wait=True)


@pytest.fixture
def response_for():
    return ok_response


@pytest.fixture
def context(queue, transport):
    return hookurl.create_context(queue, transport=transport)
