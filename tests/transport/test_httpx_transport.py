from __future__ import annotations

import httpx
import pytest

import hookurl
from hookurl import (
    ConnectionCancelledError,
    HttpxTransport,
    InMemoryResponseCache,
    NetworkError,
)

URL = "https://api.example.org/v1/items"


def make_transport(handler, **kwargs) -> HttpxTransport:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpxTransport(client, **kwargs)


def test_streams_response_through_connection(queue):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            201,
            headers={"content-type": "application/json; charset=utf-8"},
            content=b'{"id": 7}',
        )

    context = hookurl.create_context(queue, transport=make_transport(handler))
    responses = []
    conn = context.create_connection(URL, on_response=responses.append)
    assert conn.wait(5)

    assert conn.error is None
    assert conn.http_status_code == 201
    assert conn.data == b'{"id": 7}'
    assert responses[0].mime_type == "application/json"
    assert responses[0].expected_content_length == 9
    assert responses[0].is_http


def test_server_errors_are_delivered_as_responses(queue):
    transport = make_transport(lambda request: httpx.Response(503, content=b"busy"))
    context = hookurl.create_context(queue, transport=transport)

    conn = context.create_connection(URL)
    assert conn.wait(5)

    assert conn.error is None
    assert conn.http_status_code == 503
    assert conn.data == b"busy"


def test_connect_failure_becomes_network_error(queue):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    context = hookurl.create_context(queue, transport=make_transport(handler))
    conn = context.create_connection(URL)
    assert conn.wait(5)

    assert isinstance(conn.error, NetworkError)
    assert isinstance(conn.error.cause, httpx.ConnectError)
    assert conn.response is None


def test_request_method_headers_and_body_are_forwarded(queue):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    context = hookurl.create_context(queue, transport=make_transport(handler))
    request = httpx.Request(
        "POST",
        URL,
        headers={"X-Trace": "abc"},
        content=b'{"name": "widget"}',
    )
    conn = context.create_connection(request)
    assert conn.wait(5)

    assert seen[0].method == "POST"
    assert seen[0].headers["x-trace"] == "abc"
    assert seen[0].content == b'{"name": "widget"}'
    assert conn.http_status_code == 204


def test_global_authentication_delegate_is_applied(queue):
    def handler(request: httpx.Request) -> httpx.Response:
        if "authorization" not in request.headers:
            return httpx.Response(401, headers={"www-authenticate": 'Basic realm="api"'})
        return httpx.Response(200, content=request.headers["authorization"].encode())

    hookurl.set_authentication_delegate(httpx.BasicAuth("user", "secret"))
    context = hookurl.create_context(queue, transport=make_transport(handler))

    conn = context.create_connection(URL)
    assert conn.wait(5)

    assert conn.http_status_code == 200
    assert conn.data.startswith(b"Basic ")


def test_authentication_delegate_is_not_retroactive(queue):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200 if "authorization" in request.headers else 401)

    context = hookurl.create_context(queue, transport=make_transport(handler))
    hookurl.set_authentication_delegate(httpx.BasicAuth("user", "secret"))

    conn = context.create_connection(URL)
    assert conn.wait(5)
    assert conn.http_status_code == 401


def test_cancel_from_data_callback_stops_the_stream(queue):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=iter([b"a", b"b", b"c"]))

    context = hookurl.create_context(queue, transport=make_transport(handler, chunk_size=1))
    chunks: list[bytes] = []
    finished: list[object] = []

    def on_data(chunk: bytes) -> None:
        chunks.append(chunk)
        conn.cancel()

    conn = context.connection(on_data=on_data, on_finished=lambda c: finished.append(c.error))
    conn.enqueue_with_request(URL)
    assert conn.wait(5)

    assert chunks == [b"a"]
    assert len(finished) == 1
    assert isinstance(finished[0], ConnectionCancelledError)


def test_cache_serves_repeated_get_and_honours_hook(queue):
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(200, content=b"fresh")

    cache = InMemoryResponseCache(ttl_s=60)
    context = hookurl.create_context(queue, transport=make_transport(handler, cache=cache))

    first = context.create_connection(URL)
    assert first.wait(5)
    second = context.create_connection(URL)
    assert second.wait(5)

    assert calls == [URL]
    assert second.data == b"fresh"
    assert second.http_status_code == 200

    suppressed_url = f"{URL}/private"
    third = context.create_connection(suppressed_url, on_will_cache_response=lambda cached: None)
    assert third.wait(5)
    assert cache.get(suppressed_url) is None


def test_cache_is_bypassed_for_no_cache_requests_and_non_get(queue):
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(200, content=b"ok")

    cache = InMemoryResponseCache()
    context = hookurl.create_context(queue, transport=make_transport(handler, cache=cache))

    for request in (
        httpx.Request("GET", URL),
        httpx.Request("GET", URL, headers={"Cache-Control": "no-cache"}),
        httpx.Request("POST", URL),
    ):
        conn = context.create_connection(request)
        assert conn.wait(5)

    assert calls == ["GET", "GET", "POST"]
    assert len(cache) == 1


def test_invalid_chunk_size_is_rejected():
    with pytest.raises(ValueError):
        HttpxTransport(chunk_size=0)
